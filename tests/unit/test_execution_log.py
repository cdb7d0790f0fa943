"""Testes para o decorator @log_execution."""

import logging

import pytest

from universal_decorators import log_execution
from universal_decorators.policies.execution_log import DEFAULT_LOGGER_NAME


class TestLogExecution:
    """Testes para log_execution."""

    def test_logs_params_and_timing(self, caplog: pytest.LogCaptureFixture) -> None:
        """Deve registrar argumentos e duração."""

        @log_execution("info")
        def add(a: int, b: int) -> int:
            return a + b

        with caplog.at_level(logging.INFO, logger=DEFAULT_LOGGER_NAME):
            assert add(1, b=2) == 3

        assert "[add] Called with: args=(1,) kwargs={'b': 2}" in caplog.text
        assert "[add] Completed in" in caplog.text

    def test_logs_result(self, caplog: pytest.LogCaptureFixture) -> None:
        """Deve registrar o resultado quando solicitado."""

        @log_execution("debug", timing=False, params=False, result=True)
        def answer() -> int:
            return 42

        with caplog.at_level(logging.DEBUG, logger=DEFAULT_LOGGER_NAME):
            answer()

        assert "[answer] Result: 42" in caplog.text
        assert "Called with" not in caplog.text

    def test_logs_and_reraises_errors(self, caplog: pytest.LogCaptureFixture) -> None:
        """Falhas devem ser registradas em ERROR e relançadas."""

        @log_execution()
        def fail() -> None:
            raise ValueError("boom")

        with caplog.at_level(logging.INFO, logger=DEFAULT_LOGGER_NAME), pytest.raises(ValueError):
            fail()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "[fail] Failed: boom (ValueError)" in errors[0].getMessage()

    def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        """Deve usar o logger informado."""
        custom = logging.getLogger("tests.custom")

        @log_execution("warning", logger=custom)
        def run() -> None:
            pass

        with caplog.at_level(logging.WARNING, logger="tests.custom"):
            run()

        assert all(r.name == "tests.custom" for r in caplog.records)
        assert caplog.records

    def test_method_name_qualified(self, caplog: pytest.LogCaptureFixture) -> None:
        """Métodos devem aparecer com o nome da classe."""

        class Service:
            @log_execution(timing=False)
            def ping(self) -> str:
                return "pong"

        with caplog.at_level(logging.INFO, logger=DEFAULT_LOGGER_NAME):
            assert Service().ping() == "pong"

        assert "[Service.ping]" in caplog.text

    def test_invalid_level(self) -> None:
        """Nível desconhecido deve levantar ValueError."""
        with pytest.raises(ValueError):
            log_execution("trace")

    @pytest.mark.asyncio
    async def test_async(self, caplog: pytest.LogCaptureFixture) -> None:
        """Funções async devem ser registradas após o await."""

        @log_execution(result=True)
        async def fetch() -> str:
            return "data"

        with caplog.at_level(logging.INFO, logger=DEFAULT_LOGGER_NAME):
            assert await fetch() == "data"

        assert "[fetch] Result: 'data'" in caplog.text
