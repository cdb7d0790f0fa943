"""Configuração de fixtures para testes."""

import pytest

from universal_decorators.config import DecoratorConfig


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Garante que variáveis de ambiente da biblioteca não vazem para os testes."""
    for name in (
        DecoratorConfig.ENV_CACHE_MODE,
        DecoratorConfig.ENV_CACHE_SIZE,
        DecoratorConfig.ENV_PROTECTION_LEVEL,
        DecoratorConfig.ENV_LOG_LEVEL,
    ):
        monkeypatch.delenv(name, raising=False)
