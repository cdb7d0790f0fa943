"""Testes para o decorator @rate_limit."""

import asyncio
import time
from unittest.mock import patch

import pytest

from universal_decorators import ErrorKind, RateLimitError, rate_limit
from universal_decorators.policies.rate_limit import resolve_window


class TestRateLimit:
    """Testes para rate_limit."""

    def test_reject_when_window_full(self) -> None:
        """Terceira chamada na janela deve levantar RateLimitError."""
        calls = 0

        @rate_limit(requests=2, window="1s")
        def send() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert send() == 1
        assert send() == 2

        with pytest.raises(RateLimitError) as exc_info:
            send()

        error = exc_info.value
        assert 0 < error.retry_after <= 1.0
        assert error.kind is ErrorKind.RATE_LIMIT
        assert str(error) == "Rate limit exceeded"
        assert calls == 2

    def test_window_resets(self) -> None:
        """Após a janela a chamada deve ser aceita novamente."""

        @rate_limit(requests=2, window="1s")
        def send() -> str:
            return "sent"

        send()
        send()
        time.sleep(1.1)

        assert send() == "sent"

    def test_custom_message(self) -> None:
        """Deve usar a mensagem configurada."""

        @rate_limit(requests=1, window=60, message="Slow down")
        def send() -> None:
            pass

        send()
        with pytest.raises(RateLimitError, match="Slow down"):
            send()

    def test_partition_by_argument(self) -> None:
        """Cada partição deve ter seu próprio contador."""

        @rate_limit(requests=1, window="1m", per=lambda user_id: user_id)
        def fetch(user_id: str) -> str:
            return user_id

        assert fetch("alice") == "alice"
        assert fetch("bob") == "bob"
        with pytest.raises(RateLimitError):
            fetch("alice")

    def test_cache_strategy_returns_last_result(self) -> None:
        """Estratégia cache deve retornar o último resultado da partição."""
        calls = 0

        @rate_limit(requests=1, window="1m", strategy="cache")
        def load() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert load() == 1
        assert load() == 1
        assert calls == 1

    def test_wait_strategy_sleeps_until_reset(self) -> None:
        """Estratégia wait deve aguardar a janela reiniciar."""

        @rate_limit(requests=1, window=0.1, strategy="wait")
        def ping() -> str:
            return "pong"

        ping()
        start = time.monotonic()

        assert ping() == "pong"
        assert time.monotonic() - start >= 0.05

    @pytest.mark.asyncio
    async def test_wait_strategy_async(self) -> None:
        """Funções async devem aguardar com asyncio.sleep."""

        @rate_limit(requests=1, window=0.05, strategy="wait")
        async def ping() -> str:
            return "pong"

        assert await ping() == "pong"
        assert await ping() == "pong"

    def test_reset_limits(self) -> None:
        """reset_limits deve liberar todas as partições."""

        @rate_limit(requests=1, window="1h")
        def send() -> str:
            return "ok"

        send()
        send.reset_limits()

        assert send() == "ok"

    def test_invalid_configuration(self) -> None:
        """Configurações inválidas devem levantar ValueError."""
        with pytest.raises(ValueError):
            rate_limit(requests=0)
        with pytest.raises(ValueError):
            rate_limit(strategy="drop")
        with pytest.raises(ValueError):
            rate_limit(window="1w")

    def test_resolve_window(self) -> None:
        """Janelas nomeadas devem ser convertidas em segundos."""
        assert resolve_window("1s") == 1.0
        assert resolve_window("1d") == 86400.0
        assert resolve_window(2) == 2.0

    @pytest.mark.asyncio
    async def test_wait_strategy_sync_does_not_block_event_loop(self) -> None:
        """Função síncrona com wait dentro de um event loop deve retornar uma task."""
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.01)

        @rate_limit(requests=1, window=0.2, strategy="wait")
        def ping() -> str:
            return "pong"

        assert ping() == "pong"

        ticker_task = asyncio.create_task(ticker())
        start = time.monotonic()
        deferred = ping()

        assert time.monotonic() - start < 0.05
        assert isinstance(deferred, asyncio.Task)
        assert await deferred == "pong"
        assert time.monotonic() - start >= 0.15
        assert ticks > 5

        ticker_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await ticker_task

    def test_window_resets_only_after_exceeding(self) -> None:
        """A janela só reinicia quando o tempo decorrido excede sua duração."""
        with patch("universal_decorators.policies.rate_limit.time") as mock_time:
            mock_time.monotonic.side_effect = [100.0, 110.0, 110.5]

            @rate_limit(requests=1, window=10)
            def send() -> str:
                return "sent"

            assert send() == "sent"
            with pytest.raises(RateLimitError):
                send()
            assert send() == "sent"

    def test_expired_partitions_pruned(self) -> None:
        """Partições com janela expirada devem ser removidas."""
        with patch("universal_decorators.policies.rate_limit.time") as mock_time:
            mock_time.monotonic.side_effect = [100.0, 101.0, 115.0]

            @rate_limit(requests=1, window=10, per=lambda user_id: user_id)
            def fetch(user_id: str) -> str:
                return user_id

            fetch("alice")
            fetch("bob")
            assert fetch.policy.partition_count() == 2

            assert fetch("carol") == "carol"
            assert fetch.policy.partition_count() == 1
