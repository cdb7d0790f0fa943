"""Decorators baseados em tempo: @time_limit, @debounce e @throttle."""

import asyncio
import concurrent.futures
import functools
import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..config import DecoratorConfig
from ..constants import IGNORED
from ..exceptions import TimeLimitError
from ..wrapper import AsyncProceed, Call, Policy, Proceed, ReceiverRegistry, policy_decorator

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT_SECONDS = 5.0
DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_THROTTLE_SECONDS = 1.0

Deferred = asyncio.Future | concurrent.futures.Future


class TimeLimitPolicy(Policy):
    """Falha quando a chamada demora mais que o limite.

    A verificação acontece depois do retorno: a chamada nunca é interrompida.
    """

    name = "time_limit"

    def __init__(self, seconds: float) -> None:
        super().__init__()
        self._seconds = seconds

    def _check(self, start_time: float) -> None:
        elapsed = time.perf_counter() - start_time
        if elapsed > self._seconds:
            raise TimeLimitError(
                f"Method {self.target.qualified_name} exceeded time limit of {self._seconds}s "
                f"(took {elapsed:.3f}s)",
                self._seconds,
            )

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        start_time = time.perf_counter()
        result = proceed(call)
        self._check(start_time)
        return result

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        start_time = time.perf_counter()
        result = await proceed(call)
        self._check(start_time)
        return result


@dataclass
class _DebounceState:
    """Invocação agendada de um receiver."""

    generation: int = 0
    cancel: Callable[[], Any] | None = None
    waiters: list[Deferred] = field(default_factory=list)


async def _resolve(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _settle(future: Deferred, result: Any = None, error: BaseException | None = None) -> None:
    """Completa um future asyncio ou concurrent a partir de qualquer thread."""
    if isinstance(future, asyncio.Future):
        loop = future.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is not loop:
            loop.call_soon_threadsafe(_settle, future, result, error)
            return

    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class DebouncePolicy(Policy):
    """Executa apenas a última chamada de uma rajada, após ``delay`` segundos.

    Cada chamada cancela a invocação ainda não executada do mesmo receiver e
    agenda uma nova. O retorno é um future: ``asyncio.Future`` dentro de um
    event loop (agendado com ``call_later``) ou ``concurrent.futures.Future``
    fora dele (agendado com ``threading.Timer``). Chamadas substituídas
    recebem o resultado da invocação que sobreviveu.
    """

    name = "debounce"

    def __init__(self, delay: float) -> None:
        super().__init__()
        self._delay = delay
        self._receivers: ReceiverRegistry[_DebounceState] = ReceiverRegistry(_DebounceState)
        self._lock = threading.Lock()

    def wraps_async(self, inner_is_async: bool) -> bool:
        # O chamador sempre recebe um future, nunca uma corrotina
        return False

    def invoke(self, call: Call, proceed: Proceed) -> Deferred:
        state = self._receivers.get(call.receiver)
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        with self._lock:
            if state.cancel is not None:
                state.cancel()
            state.generation += 1
            generation = state.generation

            future: Deferred = loop.create_future() if loop is not None else concurrent.futures.Future()
            state.waiters.append(future)

            if loop is not None:
                handle = loop.call_later(self._delay, self._fire_in_loop, state, generation, call, proceed)
                state.cancel = handle.cancel
            else:
                timer = threading.Timer(self._delay, self._fire_in_thread, args=(state, generation, call, proceed))
                timer.daemon = True
                state.cancel = timer.cancel
                timer.start()

        return future

    def _take_waiters(self, state: _DebounceState, generation: int) -> list[Deferred] | None:
        with self._lock:
            if state.generation != generation:
                return None
            waiters, state.waiters = state.waiters, []
            state.cancel = None
            return waiters

    def _fire_in_loop(self, state: _DebounceState, generation: int, call: Call, proceed: Proceed) -> None:
        waiters = self._take_waiters(state, generation)
        if waiters is None:
            return

        try:
            result = proceed(call)
        except Exception as e:
            self._settle_all(waiters, error=e)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            task.add_done_callback(functools.partial(self._settle_from_task, waiters))
            return
        self._settle_all(waiters, result=result)

    def _fire_in_thread(self, state: _DebounceState, generation: int, call: Call, proceed: Proceed) -> None:
        waiters = self._take_waiters(state, generation)
        if waiters is None:
            return

        try:
            result = proceed(call)
            if inspect.isawaitable(result):
                result = asyncio.run(_resolve(result))
        except Exception as e:
            self._settle_all(waiters, error=e)
            return
        self._settle_all(waiters, result=result)

    def _settle_from_task(self, waiters: list[Deferred], task: asyncio.Future) -> None:
        if task.cancelled():
            for future in waiters:
                future.cancel()
            return
        error = task.exception()
        if error is not None:
            self._settle_all(waiters, error=error)
        else:
            self._settle_all(waiters, result=task.result())

    def _settle_all(self, waiters: list[Deferred], result: Any = None, error: BaseException | None = None) -> None:
        if error is not None:
            logger.debug(f"[{self.target.qualified_name}] Debounced call failed: {error!r}")
        for future in waiters:
            _settle(future, result, error)

    def cancel_pending(self) -> int:
        """Cancela todas as invocações agendadas.

        Returns:
            Número de chamadas canceladas
        """
        cancelled = 0
        with self._lock:
            for state in self._receivers.states():
                if state.cancel is not None:
                    state.cancel()
                    state.cancel = None
                state.generation += 1
                for future in state.waiters:
                    future.cancel()
                cancelled += len(state.waiters)
                state.waiters = []
        return cancelled

    def accessors(self) -> dict[str, Callable[..., Any]]:
        return {"cancel_pending": self.cancel_pending}


@dataclass
class _ThrottleState:
    last_call: float | None = None


class ThrottlePolicy(Policy):
    """Aceita no máximo uma chamada por ``interval`` segundos por receiver.

    Chamadas dentro do intervalo não executam a função e retornam ``IGNORED``.
    """

    name = "throttle"

    def __init__(self, interval: float) -> None:
        super().__init__()
        self._interval = interval
        self._receivers: ReceiverRegistry[_ThrottleState] = ReceiverRegistry(_ThrottleState)
        self._lock = threading.Lock()

    def _accept(self, call: Call) -> bool:
        now = time.monotonic()
        state = self._receivers.get(call.receiver)
        with self._lock:
            if state.last_call is not None and now - state.last_call < self._interval:
                return False
            state.last_call = now
            return True

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        if not self._accept(call):
            return IGNORED
        return proceed(call)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        if not self._accept(call):
            return IGNORED
        return await proceed(call)


def time_limit(seconds: float = DEFAULT_TIME_LIMIT_SECONDS) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que levanta TimeLimitError quando a execução excede ``seconds``.

    Raises:
        ValueError: Se seconds for negativo
    """
    DecoratorConfig.validate_non_negative("seconds", seconds)
    return policy_decorator(lambda: TimeLimitPolicy(seconds))


def debounce(delay: float = DEFAULT_DEBOUNCE_SECONDS) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de debounce.

    Args:
        delay: Segundos sem novas chamadas antes de executar

    Returns:
        Decorator cujas chamadas retornam um future com o resultado

    Example:
        ```python
        @debounce(0.05)
        async def search(query: str) -> list[str]:
            ...

        search("a"); search("ab")
        await search("abc")   # executa apenas search("abc")
        ```
    """
    DecoratorConfig.validate_non_negative("delay", delay)
    return policy_decorator(lambda: DebouncePolicy(delay))


def throttle(interval: float = DEFAULT_THROTTLE_SECONDS) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de throttle.

    Args:
        interval: Intervalo mínimo em segundos entre chamadas aceitas

    Returns:
        Decorator; chamadas descartadas retornam ``IGNORED``
    """
    DecoratorConfig.validate_non_negative("interval", interval)
    return policy_decorator(lambda: ThrottlePolicy(interval))
