"""Sentinelas e valores padrão compartilhados pelos decorators."""


class _Sentinel:
    """Marcador único, distinguível de qualquer valor retornado por funções."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Sentinel":
        return self

    def __deepcopy__(self, memo: dict) -> "_Sentinel":
        return self

    def __reduce__(self) -> str:
        return self._name


# Ausência de valor no cache (distinto de um None cacheado)
MISSING = _Sentinel("MISSING")

# Retorno de chamadas descartadas pelo @throttle
IGNORED = _Sentinel("IGNORED")

# Receiver implícito de funções simples (não métodos)
IMPLICIT_RECEIVER = _Sentinel("IMPLICIT_RECEIVER")

# Tamanhos do cache por modo (balanced usa o tamanho configurado)
CACHE_MODE_SIZES = {"light": 32, "fast": 256}
CACHE_MODES = ("light", "balanced", "fast")
DEFAULT_CACHE_MODE = "balanced"
DEFAULT_CACHE_SIZE = 128

# Níveis de proteção
PROTECTION_LEVELS = {"loose": 1, "normal": 2, "strict": 3}
DEFAULT_PROTECTION_LEVEL = "normal"

# Log
LOG_LEVELS = ("debug", "info", "warning", "error")
DEFAULT_LOG_LEVEL = "info"

# Janelas do rate limit em segundos
RATE_LIMIT_WINDOWS = {"1s": 1.0, "1m": 60.0, "1h": 3600.0, "1d": 86400.0}
RATE_LIMIT_STRATEGIES = ("reject", "wait", "cache")

# Métricas rastreáveis
METRIC_KINDS = ("calls", "duration", "errors")
DEFAULT_MAX_SAMPLES = 1000
