"""Testes para @time_limit, @debounce e @throttle."""

import asyncio
import concurrent.futures
import time

import pytest

from universal_decorators import IGNORED, ErrorKind, TimeLimitError, debounce, throttle, time_limit


class TestTimeLimit:
    """Testes para time_limit."""

    def test_within_limit(self) -> None:
        """Deve retornar normalmente dentro do limite."""

        @time_limit(1.0)
        def fast() -> str:
            return "done"

        assert fast() == "done"

    def test_exceeded_after_completion(self) -> None:
        """Deve levantar TimeLimitError depois que a função termina."""
        finished = []

        @time_limit(0.01)
        def slow() -> None:
            time.sleep(0.05)
            finished.append(True)

        with pytest.raises(TimeLimitError) as exc_info:
            slow()

        assert finished == [True]
        assert exc_info.value.time_limit == 0.01
        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert "exceeded time limit" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_async_exceeded(self) -> None:
        """Funções async também devem ser verificadas."""

        @time_limit(0.01)
        async def slow() -> None:
            await asyncio.sleep(0.05)

        with pytest.raises(TimeLimitError):
            await slow()

    def test_negative_limit(self) -> None:
        """Limite negativo deve levantar ValueError."""
        with pytest.raises(ValueError):
            time_limit(-1)


class TestThrottle:
    """Testes para throttle."""

    def test_ignores_calls_within_interval(self) -> None:
        """Chamadas dentro do intervalo devem retornar IGNORED sem executar."""
        calls = 0

        @throttle(0.1)
        def tick() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert tick() == 1
        assert tick() is IGNORED
        assert calls == 1

        time.sleep(0.12)

        assert tick() == 2

    def test_state_per_receiver(self) -> None:
        """Cada instância deve ter seu próprio intervalo."""

        class Button:
            @throttle(10)
            def click(self) -> str:
                return "clicked"

        first, second = Button(), Button()

        assert first.click() == "clicked"
        assert second.click() == "clicked"
        assert first.click() is IGNORED

    @pytest.mark.asyncio
    async def test_async(self) -> None:
        """Funções async devem ser limitadas da mesma forma."""

        @throttle(10)
        async def fetch() -> str:
            return "data"

        assert await fetch() == "data"
        assert await fetch() is IGNORED


class TestDebounce:
    """Testes para debounce."""

    @pytest.mark.asyncio
    async def test_only_last_call_executes(self) -> None:
        """Apenas a última chamada da rajada deve executar."""
        received = []

        @debounce(0.05)
        async def search(query: str) -> str:
            received.append(query)
            return query.upper()

        first = search("a")
        second = search("ab")
        result = await search("abc")

        assert result == "ABC"
        assert received == ["abc"]
        assert await first == "ABC"
        assert await second == "ABC"

    @pytest.mark.asyncio
    async def test_sync_function_in_loop(self) -> None:
        """Funções síncronas chamadas em um loop retornam asyncio.Future."""

        @debounce(0.01)
        def save(value: int) -> int:
            return value * 2

        future = save(2)

        assert isinstance(future, asyncio.Future)
        assert await future == 4

    def test_sync_without_loop(self) -> None:
        """Fora de um event loop deve retornar concurrent.futures.Future."""
        calls = []

        @debounce(0.02)
        def save(value: int) -> int:
            calls.append(value)
            return value

        save(1)
        future = save(2)

        assert isinstance(future, concurrent.futures.Future)
        assert future.result(timeout=1) == 2
        assert calls == [2]

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        """Erros da invocação devem chegar ao future."""

        @debounce(0.01)
        async def fail() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await fail()

    @pytest.mark.asyncio
    async def test_state_per_receiver(self) -> None:
        """Instâncias diferentes não devem cancelar umas às outras."""

        class Editor:
            def __init__(self, name: str) -> None:
                self.name = name

            @debounce(0.02)
            def save(self) -> str:
                return self.name

        a, b = Editor("a"), Editor("b")

        assert await asyncio.gather(a.save(), b.save()) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_cancel_pending(self) -> None:
        """cancel_pending deve cancelar invocações agendadas."""
        calls = []

        @debounce(0.05)
        def save() -> None:
            calls.append(1)

        future = save()

        assert save.cancel_pending() == 1
        assert future.cancelled()

        await asyncio.sleep(0.08)
        assert calls == []
