"""Testes para @repeat e @async_retry."""

import pytest

from universal_decorators import ErrorKind, RetryError, async_retry, repeat
from universal_decorators.policies.retry import AsyncRetryPolicy


def flaky(failures: int):
    """Cria função que falha ``failures`` vezes antes de retornar "ok"."""
    state = {"calls": 0}

    def func() -> str:
        state["calls"] += 1
        if state["calls"] <= failures:
            raise ConnectionError(f"failure {state['calls']}")
        return "ok"

    return func, state


class TestRepeat:
    """Testes para repeat."""

    def test_succeeds_after_failures(self) -> None:
        """Deve repetir até obter sucesso."""
        func, state = flaky(2)

        assert repeat(times=3)(func)() == "ok"
        assert state["calls"] == 3

    def test_reraises_last_error(self) -> None:
        """Deve relançar o último erro após esgotar tentativas."""
        func, state = flaky(5)

        with pytest.raises(ConnectionError, match="failure 3"):
            repeat(times=3)(func)()

        assert state["calls"] == 3

    def test_stops_on_first_success(self) -> None:
        """Não deve repetir após sucesso."""
        func, state = flaky(0)

        repeat(times=5)(func)()

        assert state["calls"] == 1

    @pytest.mark.asyncio
    async def test_async(self) -> None:
        """Funções async devem ser repetidas com espera assíncrona."""
        calls = 0

        @repeat(times=2, delay=0.01)
        async def fetch() -> int:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise TimeoutError()
            return calls

        assert await fetch() == 2

    def test_invalid_times(self) -> None:
        """times < 1 deve levantar ValueError."""
        with pytest.raises(ValueError):
            repeat(times=0)


class TestAsyncRetry:
    """Testes para async_retry."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self) -> None:
        """Deve tentar novamente até obter sucesso."""
        func, state = flaky(2)

        assert await async_retry(attempts=3, delay=0)(func)() == "ok"
        assert state["calls"] == 3

    @pytest.mark.asyncio
    async def test_exhausted_raises_retry_error(self) -> None:
        """Após esgotar tentativas deve levantar RetryError com o último erro."""
        func, state = flaky(10)

        with pytest.raises(RetryError) as exc_info:
            await async_retry(attempts=3, delay=0)(func)()

        error = exc_info.value
        assert error.attempts == 3
        assert error.kind is ErrorKind.RETRY_EXHAUSTED
        assert isinstance(error.last_error, ConnectionError)
        assert error.__cause__ is error.last_error
        assert state["calls"] == 3

    @pytest.mark.asyncio
    async def test_retry_on_filters_errors(self) -> None:
        """Erros fora de retry_on devem ser relançados sem nova tentativa."""
        calls = 0

        @async_retry(attempts=5, delay=0, retry_on=[ConnectionError])
        async def fail() -> None:
            nonlocal calls
            calls += 1
            raise KeyError("nope")

        with pytest.raises(KeyError):
            await fail()

        assert calls == 1

    def test_sync_function_becomes_coroutine(self) -> None:
        """O wrapper deve ser assíncrono mesmo para funções síncronas."""
        wrapped = async_retry()(lambda: 1)

        assert wrapped.is_async

    def test_calculate_delay(self) -> None:
        """Backoff exponencial deve dobrar a espera a cada tentativa."""
        linear = AsyncRetryPolicy(delay=0.5)
        exponential = AsyncRetryPolicy(delay=0.5, exponential_backoff=True)

        assert [linear.calculate_delay(i) for i in range(3)] == [0.5, 0.5, 0.5]
        assert [exponential.calculate_delay(i) for i in range(3)] == [0.5, 1.0, 2.0]

    def test_invalid_configuration(self) -> None:
        """Configurações inválidas devem levantar ValueError."""
        with pytest.raises(ValueError):
            async_retry(attempts=0)
        with pytest.raises(ValueError):
            async_retry(delay=-1)
