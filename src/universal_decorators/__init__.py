"""universal-decorators: decorators universais para funções e métodos.

Cache LRU, proteção de argumentos, log de execução, repetição, limite de
tempo, debounce, throttle, retry assíncrono, validação, rate limiting,
métricas, resultados imutáveis e herança funcional, com suporte a funções
síncronas e assíncronas.

Uso básico:
    ```python
    from universal_decorators import super_cache, compose

    @super_cache("fast")
    def get_user(user_id: int) -> dict:
        return db.query(user_id)

    get_user.cache_info()
    get_user.cache_clear()

    @compose(validate={"params": [{"type": "number", "min": 0}]}, metrics=True, cache=True)
    async def get_score(user_id: int) -> float:
        return await api.score(user_id)

    get_score.get_metrics().success_rate
    ```

Com métricas OpenTelemetry:
    ```python
    from universal_decorators import metrics, OpenTelemetryMetricsSink

    sink = OpenTelemetryMetricsSink()

    @metrics(sink=sink, labels={"service": "users"})
    def my_function():
        pass
    ```
"""

__version__ = "1.0.0"

# Composer
from .composer import compose, decorate, super_matrix, wrap_function

# Configuração
from .config import DecoratorConfig

# Sentinelas
from .constants import IGNORED, MISSING

# Exceções
from .exceptions import (
    DecoratorError,
    ErrorKind,
    RateLimitError,
    RetryError,
    TimeLimitError,
    ValidationError,
)

# Geração de chaves
from .key_builder import DefaultKeyBuilder

# Cache
from .lru import CacheInfo, LRUCache

# Métricas
from .telemetry import (
    InMemoryMetricsSink,
    MetricsSnapshot,
    NoOpMetricsSink,
    OpenTelemetryMetricsSink,
)

# Decorators
from .policies import (
    ValidationRule,
    async_retry,
    debounce,
    freeze,
    immutable,
    inherit_from,
    log_execution,
    metrics,
    protect,
    rate_limit,
    repeat,
    super_cache,
    throttle,
    time_limit,
    validate,
    var_guard,
)

# Protocols (para extensibilidade)
from .protocols import KeyBuilder, MetricsSink

# Wrapper (uso avançado)
from .wrapper import Call, Policy, PolicyWrapper, TargetKind, WrapTarget, policy_decorator, wrap

__all__ = [
    # Decorators
    "super_cache",
    "protect",
    "log_execution",
    "repeat",
    "time_limit",
    "debounce",
    "throttle",
    "async_retry",
    "validate",
    "ValidationRule",
    "rate_limit",
    "metrics",
    "immutable",
    "var_guard",
    "inherit_from",
    "freeze",
    # Composer
    "compose",
    "super_matrix",
    "decorate",
    "wrap_function",
    # Cache
    "LRUCache",
    "CacheInfo",
    "DefaultKeyBuilder",
    # Métricas
    "MetricsSnapshot",
    "NoOpMetricsSink",
    "InMemoryMetricsSink",
    "OpenTelemetryMetricsSink",
    # Sentinelas
    "MISSING",
    "IGNORED",
    # Exceções
    "DecoratorError",
    "ErrorKind",
    "ValidationError",
    "RateLimitError",
    "TimeLimitError",
    "RetryError",
    # Configuração
    "DecoratorConfig",
    # Protocols
    "KeyBuilder",
    "MetricsSink",
    # Wrapper
    "Call",
    "Policy",
    "PolicyWrapper",
    "TargetKind",
    "WrapTarget",
    "policy_decorator",
    "wrap",
]
