"""Decorator @log_execution: registra chamadas, duração, resultado e falhas."""

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import DecoratorConfig
from ..constants import LOG_LEVELS
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

DEFAULT_LOGGER_NAME = "universal_decorators.execution"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LogPolicy(Policy):
    """Registra cada chamada no logger configurado.

    Falhas são sempre registradas em ERROR e relançadas.
    """

    name = "log_execution"

    def __init__(
        self,
        level: str,
        timing: bool = True,
        params: bool = True,
        result: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__()
        self._level = _LEVELS[level]
        self._timing = timing
        self._params = params
        self._result = result
        self._logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)

    def _before(self, call: Call) -> float:
        if self._params:
            self._logger.log(
                self._level,
                "[%s] Called with: args=%r kwargs=%r",
                self.target.qualified_name,
                call.args,
                call.kwargs,
            )
        return time.perf_counter()

    def _after(self, start_time: float, result: Any) -> None:
        name = self.target.qualified_name
        if self._timing:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._logger.log(self._level, "[%s] Completed in %.2fms", name, duration_ms)
        if self._result:
            self._logger.log(self._level, "[%s] Result: %r", name, result)

    def _failed(self, error: Exception) -> None:
        self._logger.error("[%s] Failed: %s (%s)", self.target.qualified_name, error, type(error).__name__)

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        start_time = self._before(call)
        try:
            result = proceed(call)
        except Exception as e:
            self._failed(e)
            raise
        self._after(start_time, result)
        return result

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        start_time = self._before(call)
        try:
            result = await proceed(call)
        except Exception as e:
            self._failed(e)
            raise
        self._after(start_time, result)
        return result


def log_execution(
    level: str | None = None,
    timing: bool = True,
    params: bool = True,
    result: bool = False,
    *,
    logger: logging.Logger | None = None,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que registra a execução da função via ``logging``.

    Args:
        level: debug, info, warning ou error (default configurável, ``info``)
        timing: Registra a duração
        params: Registra os argumentos
        result: Registra o valor retornado
        logger: Logger de destino (default: ``universal_decorators.execution``)

    Raises:
        ValueError: Se o nível for desconhecido
    """
    resolved_level = DecoratorConfig.resolve_log_level(level)
    DecoratorConfig.validate_choice("level", resolved_level, LOG_LEVELS)
    return policy_decorator(lambda: LogPolicy(resolved_level, timing, params, result, logger))
