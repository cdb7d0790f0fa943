"""Decorator @rate_limit: limita chamadas por janela de tempo."""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..config import DecoratorConfig
from ..constants import RATE_LIMIT_STRATEGIES, RATE_LIMIT_WINDOWS
from ..exceptions import RateLimitError
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_MESSAGE = "Rate limit exceeded"
GLOBAL_PARTITION = "global"


@dataclass
class RateWindow:
    """Contador de uma partição na janela atual."""

    count: int = 0
    window_start: float = 0.0
    last_result: Any = None
    has_result: bool = False


def resolve_window(window: str | float) -> float:
    """Converte ``1s``/``1m``/``1h``/``1d`` ou segundos em segundos.

    Raises:
        ValueError: Se a janela for desconhecida ou não positiva
    """
    if isinstance(window, str):
        if window not in RATE_LIMIT_WINDOWS:
            raise ValueError(f"window must be one of {', '.join(RATE_LIMIT_WINDOWS)}, got {window!r}")
        return RATE_LIMIT_WINDOWS[window]
    DecoratorConfig.validate_positive("window", window)
    return float(window)


class RateLimitPolicy(Policy):
    """Aceita no máximo ``requests`` chamadas por janela e partição.

    A partição vem de ``per(*args, **kwargs)``; sem ``per`` há uma única
    partição global. Quando a janela está cheia:

    - ``reject``: levanta RateLimitError com ``retry_after`` em segundos
    - ``wait``: espera a janela reiniciar e verifica de novo; funções
      síncronas chamadas dentro de um event loop retornam uma task
      ``asyncio`` em vez de bloquear o loop
    - ``cache``: retorna o último resultado da partição
    """

    name = "rate_limit"

    def __init__(
        self,
        requests: int,
        window: float,
        per: Callable[..., Any] | None = None,
        strategy: str = "reject",
        message: str = DEFAULT_RATE_LIMIT_MESSAGE,
    ) -> None:
        super().__init__()
        self._requests = requests
        self._window = window
        self._per = per
        self._strategy = strategy
        self._message = message
        self._partitions: dict[Any, RateWindow] = {}
        self._lock = threading.Lock()

        self._last_prune = 0.0

    def _partition(self, call: Call, now: float) -> RateWindow:
        key = self._per(*call.args, **call.kwargs) if self._per is not None else GLOBAL_PARTITION
        window = self._partitions.get(key)
        if window is None:
            window = RateWindow(window_start=now)
            self._partitions[key] = window
        return window

    def _prune(self, now: float) -> None:
        """Remove partições cuja janela já expirou, no máximo uma vez por janela.

        Uma partição expirada aceitaria a próxima chamada de qualquer forma,
        então removê-la não muda o resultado.
        """
        if now - self._last_prune <= self._window:
            return
        self._last_prune = now
        expired = [key for key, window in self._partitions.items() if now - window.window_start > self._window]
        for key in expired:
            del self._partitions[key]
        if expired:
            logger.debug(f"[{self.target.qualified_name}] Pruned {len(expired)} expired rate limit partitions")

    def _acquire(self, call: Call) -> tuple[RateWindow, float]:
        """Conta a chamada na partição.

        A janela reinicia quando o tempo decorrido excede sua duração.

        Returns:
            (partição, espera em segundos); espera 0 significa chamada aceita
        """
        with self._lock:
            now = time.monotonic()
            self._prune(now)
            window = self._partition(call, now)
            if now - window.window_start > self._window:
                window.count = 0
                window.window_start = now

            if window.count < self._requests:
                window.count += 1
                return window, 0.0

            retry_after = self._window - (now - window.window_start)
            return window, max(retry_after, 1e-6)

    def _limited(self, window: RateWindow, retry_after: float) -> Any:
        """Aplica a estratégia reject ou cache a uma chamada excedente."""
        name = self.target.qualified_name
        if self._strategy == "cache":
            with self._lock:
                if window.has_result:
                    logger.debug(f"[{name}] Rate limited, returning last result")
                    return window.last_result
            raise RateLimitError(f"{self._message} (no cached result for {name})", retry_after)

        logger.warning(f"[{name}] Rate limited, retry after {retry_after:.3f}s")
        raise RateLimitError(self._message, retry_after)

    def _remember(self, window: RateWindow, result: Any) -> Any:
        with self._lock:
            window.last_result = result
            window.has_result = True
        return result

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        window, retry_after = self._acquire(call)
        if not retry_after:
            return self._remember(window, proceed(call))
        if self._strategy != "wait":
            return self._limited(window, retry_after)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            # Dentro de um event loop a espera vira uma task; o loop não bloqueia
            logger.debug(f"[{self.target.qualified_name}] Rate limited, deferring call {retry_after:.3f}s")
            return loop.create_task(self._wait_in_loop(call, proceed, retry_after))

        while retry_after:
            time.sleep(retry_after)
            window, retry_after = self._acquire(call)
        return self._remember(window, proceed(call))

    async def _wait_in_loop(self, call: Call, proceed: Proceed, retry_after: float) -> Any:
        while retry_after:
            await asyncio.sleep(retry_after)
            window, retry_after = self._acquire(call)
        return self._remember(window, proceed(call))

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        while True:
            window, retry_after = self._acquire(call)
            if not retry_after:
                return self._remember(window, await proceed(call))
            if self._strategy != "wait":
                return self._limited(window, retry_after)
            await asyncio.sleep(retry_after)

    def reset_limits(self) -> None:
        """Esquece todas as partições."""
        with self._lock:
            self._partitions.clear()

    def partition_count(self) -> int:
        """Número de partições mantidas."""
        return len(self._partitions)

    def accessors(self) -> dict[str, Callable[..., Any]]:
        return {"reset_limits": self.reset_limits}


def rate_limit(
    requests: int = 10,
    window: str | float = "1m",
    per: Callable[..., Any] | None = None,
    strategy: str = "reject",
    message: str = DEFAULT_RATE_LIMIT_MESSAGE,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de rate limiting.

    Args:
        requests: Chamadas aceitas por janela
        window: ``1s``, ``1m``, ``1h``, ``1d`` ou duração em segundos
        per: Função dos argumentos que define a partição (ex.: id do usuário)
        strategy: ``reject``, ``wait`` ou ``cache``
        message: Mensagem do RateLimitError

    Raises:
        ValueError: Se requests, window ou strategy forem inválidos

    Example:
        ```python
        @rate_limit(requests=2, window="1s", per=lambda user_id, *_: user_id)
        def send_message(user_id: str, text: str) -> None:
            ...
        ```
    """
    DecoratorConfig.validate_positive("requests", requests)
    DecoratorConfig.validate_choice("strategy", strategy, RATE_LIMIT_STRATEGIES)
    window_seconds = resolve_window(window)
    return policy_decorator(lambda: RateLimitPolicy(requests, window_seconds, per, strategy, message))
