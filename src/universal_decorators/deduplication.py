"""Deduplicação de misses concorrentes do cache assíncrono."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MissDeduplicator:
    """Compartilha uma única computação entre misses concorrentes da mesma chave.

    Usado pelo @super_cache em funções ``async def``: enquanto a primeira
    chamada com uma chave ainda está computando, as demais aguardam o mesmo
    resultado em vez de executar a função de novo.

    Exemplo:
        ```python
        dedup = MissDeduplicator()

        async def load():
            await asyncio.sleep(1)
            return "value"

        # load() executa uma única vez
        await asyncio.gather(*[dedup.run("k", load) for _ in range(10)])
        ```
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Future[Any]] = {}
        # Criado sob demanda: o decorator é aplicado antes de existir event loop
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def run(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        """Executa ``compute`` ou aguarda a execução já em andamento para ``key``.

        Args:
            key: Chave de cache
            compute: Função async que computa o valor

        Returns:
            Resultado da computação

        Raises:
            Exception: Propaga o erro da computação para todos que aguardam

        Se a task dona da computação for cancelada, quem aguardava assume a
        computação em vez de receber CancelledError.
        """
        while True:
            async with self._get_lock():
                pending = self._pending.get(key)
                if pending is None or pending.cancelled():
                    future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
                    self._pending[key] = future
                    break

            # Aguarda fora do lock: o dono da computação precisa dele no finally
            logger.debug(f"Aguardando computação em andamento para: {key!r}")
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                logger.debug(f"Computação cancelada pelo dono, assumindo: {key!r}")

        try:
            result = await compute()
            if not future.done():
                future.set_result(result)
            return result
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            if not future.done():
                future.set_exception(e)
                # Evita "exception was never retrieved" quando ninguém aguardava
                future.exception()
            raise
        finally:
            async with self._get_lock():
                if self._pending.get(key) is future:
                    del self._pending[key]

    def pending_count(self) -> int:
        """Número de computações em andamento."""
        return len(self._pending)
