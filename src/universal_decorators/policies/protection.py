"""Decorators de proteção: @protect, @var_guard e @immutable.

Congelar um valor significa trocá-lo por um equivalente imutável:
``dict`` vira ``MappingProxyType``, ``list`` vira ``tuple``, ``set`` vira
``frozenset`` e ``bytearray`` vira ``bytes``. Outros objetos não mudam.
"""

import copy
import logging
from collections.abc import Callable
from types import MappingProxyType
from typing import Any

from ..config import DecoratorConfig
from ..constants import PROTECTION_LEVELS
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)

NORMAL = PROTECTION_LEVELS["normal"]
STRICT = PROTECTION_LEVELS["strict"]

_COPYABLE_TYPES = (dict, list, set, bytearray)


def freeze(value: Any, deep: bool = False) -> Any:
    """Retorna uma versão imutável de ``value``.

    Args:
        value: Valor a congelar
        deep: Congela também os valores aninhados

    Returns:
        Valor imutável equivalente (ou o próprio valor se não for container)
    """
    return _freeze(value, deep, set())


def _freeze(value: Any, deep: bool, seen: set[int]) -> Any:
    if isinstance(value, (dict, MappingProxyType)):
        if not deep:
            return MappingProxyType(dict(value))
        if id(value) in seen:
            return value
        seen.add(id(value))
        return MappingProxyType({key: _freeze(item, deep, seen) for key, item in value.items()})

    if isinstance(value, (list, tuple)):
        if not deep:
            return tuple(value)
        if id(value) in seen:
            return value
        seen.add(id(value))
        return tuple(_freeze(item, deep, seen) for item in value)

    if isinstance(value, (set, frozenset)):
        return frozenset(value)

    if isinstance(value, bytearray):
        return bytes(value)

    return value


def shallow_copy(value: Any) -> Any:
    """Copia containers mutáveis; demais valores são retornados como estão."""
    if isinstance(value, _COPYABLE_TYPES):
        return copy.copy(value)
    return value


def _map_arguments(call: Call, transform: Callable[[Any], Any]) -> Call:
    args = tuple(transform(arg) for arg in call.args)
    kwargs = {name: transform(value) for name, value in call.kwargs.items()}
    return call.with_arguments(args, kwargs)


class ProtectPolicy(Policy):
    """Isola argumentos e trata falhas conforme o nível de proteção.

    - ``loose``: apenas captura erros
    - ``normal``: copia argumentos mutáveis antes da chamada
    - ``strict``: também congela o retorno e relança os erros
    """

    name = "protect"

    def __init__(self, level: str, silent: bool = False) -> None:
        super().__init__()
        self._level = PROTECTION_LEVELS[level]
        self._silent = silent

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        try:
            result = proceed(self._prepare(call))
        except Exception as e:
            self._report(e)
            if self._level >= STRICT:
                raise
            return None
        return self._finish(result)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        try:
            result = await proceed(self._prepare(call))
        except Exception as e:
            self._report(e)
            if self._level >= STRICT:
                raise
            return None
        return self._finish(result)

    def _prepare(self, call: Call) -> Call:
        if self._level >= NORMAL:
            return _map_arguments(call, shallow_copy)
        return call

    def _finish(self, result: Any) -> Any:
        if self._level >= STRICT:
            return freeze(result)
        return result

    def _report(self, error: Exception) -> None:
        if not self._silent:
            logger.error(f"Protected method {self.target.qualified_name} failed: {error!r}")


class VarGuardPolicy(Policy):
    """Congela cópias dos argumentos antes de repassá-los à função."""

    name = "var_guard"

    def __init__(self, immutable: bool = False, deep_freeze: bool = False) -> None:
        super().__init__()
        self._immutable = immutable
        self._deep = deep_freeze

    def _guard(self, call: Call) -> Call:
        if not self._immutable:
            return call
        return _map_arguments(call, lambda value: freeze(value, self._deep))

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        return proceed(self._guard(call))

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        return await proceed(self._guard(call))


class ImmutablePolicy(Policy):
    """Congela o valor retornado."""

    name = "immutable"

    def __init__(self, deep: bool = False) -> None:
        super().__init__()
        self._deep = deep

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        return freeze(proceed(call), self._deep)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        return freeze(await proceed(call), self._deep)


def protect(level: str | None = None, *, silent: bool = False) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de proteção (loose, normal ou strict).

    Args:
        level: Nível de proteção (default configurável, ``normal``)
        silent: Não registra falhas no log

    Raises:
        ValueError: Se o nível for desconhecido
    """
    resolved_level = DecoratorConfig.resolve_protection_level(level)
    DecoratorConfig.validate_choice("level", resolved_level, tuple(PROTECTION_LEVELS))
    return policy_decorator(lambda: ProtectPolicy(resolved_level, silent))


def var_guard(immutable: bool = False, deep_freeze: bool = False) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que impede a função de alterar os argumentos recebidos.

    Args:
        immutable: Congela cópias dos argumentos
        deep_freeze: Congela recursivamente
    """
    return policy_decorator(lambda: VarGuardPolicy(immutable, deep_freeze))


def immutable(deep: bool = False) -> Callable[[Callable[..., Any]], Any]:
    """Decorator que retorna resultados imutáveis.

    Args:
        deep: Congela recursivamente os valores aninhados
    """
    return policy_decorator(lambda: ImmutablePolicy(deep))
