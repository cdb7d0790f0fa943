"""Decorators de repetição: @repeat (sync ou async) e @async_retry."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import DecoratorConfig
from ..exceptions import RetryError
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)


class RepeatPolicy(Policy):
    """Executa até ``times`` tentativas, parando no primeiro sucesso.

    Após esgotar as tentativas relança o último erro.
    """

    name = "repeat"

    def __init__(self, times: int = 3, delay: float = 0.0) -> None:
        super().__init__()
        self._times = times
        self._delay = delay

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        for attempt in range(1, self._times + 1):
            try:
                return proceed(call)
            except Exception as e:
                if attempt == self._times:
                    raise
                logger.debug(f"[{self.target.qualified_name}] Attempt {attempt}/{self._times} failed: {e!r}")
                if self._delay > 0:
                    time.sleep(self._delay)
        raise AssertionError("unreachable")  # pragma: no cover

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        for attempt in range(1, self._times + 1):
            try:
                return await proceed(call)
            except Exception as e:
                if attempt == self._times:
                    raise
                logger.debug(f"[{self.target.qualified_name}] Attempt {attempt}/{self._times} failed: {e!r}")
                if self._delay > 0:
                    await asyncio.sleep(self._delay)
        raise AssertionError("unreachable")  # pragma: no cover


class AsyncRetryPolicy(Policy):
    """Retry assíncrono com backoff opcional.

    O wrapper resultante é sempre uma corrotina, mesmo para funções síncronas.
    Com ``retry_on`` preenchido, erros de outros tipos são relançados sem
    nova tentativa.
    """

    name = "async_retry"

    def __init__(
        self,
        attempts: int = 3,
        delay: float = 1.0,
        exponential_backoff: bool = False,
        retry_on: tuple[type[BaseException], ...] = (),
    ) -> None:
        super().__init__()
        self._attempts = attempts
        self._delay = delay
        self._exponential_backoff = exponential_backoff
        self._retry_on = retry_on

    def wraps_async(self, inner_is_async: bool) -> bool:
        return True

    def calculate_delay(self, attempt: int) -> float:
        """Espera após a tentativa ``attempt`` (0-indexed)."""
        if self._exponential_backoff:
            return self._delay * (2**attempt)
        return self._delay

    def should_retry(self, error: BaseException) -> bool:
        if not self._retry_on:
            return True
        return isinstance(error, self._retry_on)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        last_error: Exception | None = None

        for attempt in range(self._attempts):
            try:
                return await proceed(call)
            except Exception as e:
                if not self.should_retry(e):
                    raise
                last_error = e

                if attempt < self._attempts - 1:
                    wait = self.calculate_delay(attempt)
                    logger.debug(
                        f"[{self.target.qualified_name}] Attempt {attempt + 1}/{self._attempts} failed, "
                        f"retrying in {wait:.3f}s: {e!r}"
                    )
                    await asyncio.sleep(wait)

        logger.warning(f"[{self.target.qualified_name}] All {self._attempts} attempts failed: {last_error!r}")
        raise RetryError(
            f"Method {self.target.qualified_name} failed after {self._attempts} attempts",
            self._attempts,
            last_error,
        ) from last_error


def repeat(times: int = 3, delay: float = 0.0) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que repete a chamada até obter sucesso.

    Args:
        times: Número máximo de tentativas
        delay: Espera entre tentativas em segundos

    Raises:
        ValueError: Se times < 1 ou delay negativo
    """
    DecoratorConfig.validate_positive("times", times)
    DecoratorConfig.validate_non_negative("delay", delay)
    return policy_decorator(lambda: RepeatPolicy(times, delay))


def async_retry(
    attempts: int = 3,
    delay: float = 1.0,
    exponential_backoff: bool = False,
    retry_on: tuple[type[BaseException], ...] | list[type[BaseException]] = (),
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de retry assíncrono.

    Args:
        attempts: Número máximo de tentativas
        delay: Espera base entre tentativas em segundos
        exponential_backoff: Usa ``delay * 2**tentativa``
        retry_on: Tipos de erro que disparam nova tentativa (vazio = todos)

    Returns:
        Decorator que produz uma corrotina

    Raises:
        ValueError: Se attempts < 1 ou delay negativo

    Example:
        ```python
        @async_retry(attempts=5, delay=0.5, exponential_backoff=True, retry_on=[ConnectionError])
        async def fetch(url: str) -> bytes:
            ...
        ```
    """
    DecoratorConfig.validate_positive("attempts", attempts)
    DecoratorConfig.validate_non_negative("delay", delay)
    errors = tuple(retry_on)
    return policy_decorator(lambda: AsyncRetryPolicy(attempts, delay, exponential_backoff, errors))
