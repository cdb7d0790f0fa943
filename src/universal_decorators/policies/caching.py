"""Decorator @super_cache: memoização com cache LRU."""

import logging
from collections.abc import Callable
from typing import Any

from ..config import DecoratorConfig
from ..constants import CACHE_MODE_SIZES, CACHE_MODES, IGNORED, MISSING
from ..deduplication import MissDeduplicator
from ..key_builder import DefaultKeyBuilder
from ..lru import CacheInfo, LRUCache
from ..protocols import KeyBuilder
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)


class CachePolicy(Policy):
    """Memoiza resultados em um LRUCache privado.

    A chave vem apenas dos argumentos (o receiver de métodos não entra),
    então instâncias da mesma classe compartilham o cache do método.
    Erros da função e chamadas descartadas (``IGNORED``) não são cacheados.

    Em funções ``async def`` o valor aguardado é cacheado e misses
    concorrentes da mesma chave executam a função uma única vez.
    """

    name = "super_cache"

    def __init__(self, maxsize: int, key_builder: KeyBuilder | None = None) -> None:
        super().__init__()
        self._cache = LRUCache(maxsize)
        self._key_builder = key_builder or DefaultKeyBuilder()
        self._deduplicator = MissDeduplicator()

    @property
    def cache(self) -> LRUCache:
        return self._cache

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        cache_key = self._key_builder.build_key(call.args, call.kwargs)

        result = self._cache.get(cache_key)
        if result is not MISSING:
            logger.debug(f"Cache hit: {self.target.qualified_name}({cache_key})")
            return result

        logger.debug(f"Cache miss: {self.target.qualified_name}({cache_key})")
        result = proceed(call)
        self._store(cache_key, result)
        return result

    def _store(self, cache_key: str, result: Any) -> None:
        if result is IGNORED:
            # Chamada descartada por uma camada interna (ex.: throttle)
            logger.debug(f"Not caching ignored call: {self.target.qualified_name}({cache_key})")
            return
        self._cache.set(cache_key, result)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        cache_key = self._key_builder.build_key(call.args, call.kwargs)

        result = self._cache.get(cache_key)
        if result is not MISSING:
            logger.debug(f"Cache hit: {self.target.qualified_name}({cache_key})")
            return result

        logger.debug(f"Cache miss: {self.target.qualified_name}({cache_key})")

        async def compute_and_cache() -> Any:
            value = await proceed(call)
            self._store(cache_key, value)
            return value

        return await self._deduplicator.run(cache_key, compute_and_cache)

    def cache_info(self) -> CacheInfo:
        return self._cache.info()

    def cache_clear(self) -> None:
        self._cache.clear()

    def accessors(self) -> dict[str, Callable[..., Any]]:
        return {"cache_info": self.cache_info, "cache_clear": self.cache_clear}


def resolve_cache_size(mode: str | None = None, maxsize: int | None = None) -> int:
    """Calcula a capacidade do cache a partir do modo e do tamanho explícito.

    ``light`` usa 32 entradas, ``fast`` 256 e ``balanced`` o tamanho
    configurado (128 por padrão). Um ``maxsize`` explícito vale para
    qualquer modo.

    Raises:
        ValueError: Se o modo for desconhecido ou maxsize negativo
    """
    resolved_mode = DecoratorConfig.resolve_cache_mode(mode)
    DecoratorConfig.validate_choice("mode", resolved_mode, CACHE_MODES)

    if maxsize is not None:
        DecoratorConfig.validate_non_negative("maxsize", maxsize)
        return maxsize

    if resolved_mode in CACHE_MODE_SIZES:
        return CACHE_MODE_SIZES[resolved_mode]
    return DecoratorConfig.resolve_cache_size()


def super_cache(
    mode: str | None = None,
    maxsize: int | None = None,
    *,
    key_builder: KeyBuilder | None = None,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator para memoizar funções e métodos em um cache LRU.

    Args:
        mode: ``light`` (32), ``balanced`` (default, 128) ou ``fast`` (256)
        maxsize: Capacidade explícita (sobrepõe o modo; 0 desativa o cache)
        key_builder: Construtor de chaves customizado

    Returns:
        Decorator que adiciona ``cache_info()`` e ``cache_clear()`` à função

    Raises:
        ValueError: Se o modo for desconhecido ou maxsize negativo

    Example:
        ```python
        @super_cache("fast")
        def fib(n: int) -> int:
            return n if n < 2 else fib(n - 1) + fib(n - 2)

        fib(30)
        fib.cache_info().hits
        ```
    """
    size = resolve_cache_size(mode, maxsize)
    return policy_decorator(lambda: CachePolicy(size, key_builder))
