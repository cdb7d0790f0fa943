"""Decorator @validate: regras para parâmetros posicionais e retorno."""

import inspect
import logging
import re
from collections.abc import Callable, Mapping, Sequence, Sized
from dataclasses import dataclass
from typing import Any

from ..constants import MISSING
from ..exceptions import ValidationError
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator

logger = logging.getLogger(__name__)

TypeSpec = str | type | tuple[type, ...]

TYPE_NAMES: dict[str, type | tuple[type, ...]] = {
    "string": str,
    "number": (int, float),
    "boolean": bool,
    "object": Mapping,
    "array": (list, tuple),
}


@dataclass(frozen=True)
class ValidationRule:
    """Regra de validação de um valor.

    As verificações rodam nesta ordem: required, type, min, max, pattern
    e validate. Valores ``None`` (ou ausentes) só são verificados por
    ``required``.

    Attributes:
        type: Nome (string, number, boolean, object, array, function) ou tipo Python
        required: Rejeita valor ausente ou None
        min: Mínimo (comprimento para str/list/tuple/dict, valor para números)
        max: Máximo (mesma regra de min)
        pattern: Expressão regular buscada em strings
        validate: Predicado customizado
        message: Mensagem usada quando o predicado falha
    """

    type: TypeSpec | None = None
    required: bool = False
    min: float | None = None
    max: float | None = None
    pattern: str | re.Pattern[str] | None = None
    validate: Callable[[Any], bool] | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.type, str) and self.type not in TYPE_NAMES and self.type != "function":
            raise ValueError(f"Unknown validation type {self.type!r}")
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern))

    @classmethod
    def coerce(cls, rule: "ValidationRule | Mapping[str, Any] | None") -> "ValidationRule | None":
        """Aceita ValidationRule, dict com os mesmos campos ou None."""
        if rule is None or isinstance(rule, ValidationRule):
            return rule
        if isinstance(rule, Mapping):
            return cls(**rule)
        raise TypeError(f"Invalid validation rule: {rule!r}")

    @property
    def type_name(self) -> str:
        if isinstance(self.type, str):
            return self.type
        if isinstance(self.type, tuple):
            return " | ".join(t.__name__ for t in self.type)
        return getattr(self.type, "__name__", str(self.type))

    def matches_type(self, value: Any) -> bool:
        if self.type is None:
            return True
        if self.type == "function":
            return callable(value)
        expected = TYPE_NAMES.get(self.type, self.type) if isinstance(self.type, str) else self.type
        if isinstance(value, bool) and expected != bool and bool not in _as_tuple(expected):
            return False
        return isinstance(value, expected)

    def check(self, value: Any, field_name: str, label: str) -> None:
        """Valida ``value``.

        Raises:
            ValidationError: Na primeira regra violada
        """
        if value is None or value is MISSING:
            if self.required:
                raise ValidationError(f"{label} is required", field_name, "required")
            return

        if not self.matches_type(value):
            raise ValidationError(f"{label} must be of type {self.type_name}", field_name, "type")

        measure = _measure(value)
        if self.min is not None and measure is not None and measure < self.min:
            raise ValidationError(f"{label} must be >= {self.min}", field_name, "min")
        if self.max is not None and measure is not None and measure > self.max:
            raise ValidationError(f"{label} must be <= {self.max}", field_name, "max")

        if self.pattern is not None and isinstance(value, str) and not self.pattern.search(value):
            raise ValidationError(f"{label} does not match required pattern", field_name, "pattern")

        if self.validate is not None and not self.validate(value):
            raise ValidationError(self.message or f"{label} validation failed", field_name, "validate")


def _as_tuple(expected: type | tuple[type, ...]) -> tuple[type, ...]:
    return expected if isinstance(expected, tuple) else (expected,)


def _measure(value: Any) -> float | None:
    """Valor comparado com min/max: o próprio número ou o comprimento."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, Sized):
        return len(value)
    return None


class ValidatePolicy(Policy):
    """Valida argumentos antes da chamada e o retorno depois dela.

    A regra de índice ``i`` vale para o i-ésimo argumento posicional; se ele
    foi passado por nome, o valor é buscado pelo nome do parâmetro.
    """

    name = "validate"

    def __init__(
        self,
        params: Sequence[ValidationRule | None] = (),
        returns: ValidationRule | None = None,
        throw_on_error: bool = True,
    ) -> None:
        super().__init__()
        self._params = tuple(params)
        self._returns = returns
        self._throw_on_error = throw_on_error

    def _parameter_names(self, call: Call) -> list[str]:
        func = self.target.func
        if func is None:
            return []
        try:
            parameters = list(inspect.signature(func).parameters.values())
        except (ValueError, TypeError):
            return []

        names = [
            p.name
            for p in parameters
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        return names[1:] if call.is_method_call else names

    def _argument(self, call: Call, index: int, names: list[str]) -> Any:
        if index < len(call.args):
            return call.args[index]
        if index < len(names):
            return call.kwargs.get(names[index], MISSING)
        return MISSING

    def _run(self, check: Callable[[], None]) -> None:
        try:
            check()
        except ValidationError as e:
            if self._throw_on_error:
                raise
            logger.warning(f"[{self.target.qualified_name}] Validation failed for {e.field_name}: {e}")

    def validate_arguments(self, call: Call) -> None:
        if not self._params:
            return
        names = self._parameter_names(call) if len(call.args) < len(self._params) else []

        for index, rule in enumerate(self._params):
            if rule is None:
                continue
            value = self._argument(call, index, names)
            self._run(lambda: rule.check(value, f"param{index}", f"Parameter {index}"))

    def validate_result(self, result: Any) -> None:
        if self._returns is not None:
            self._run(lambda: self._returns.check(result, "return", "Return value"))

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        self.validate_arguments(call)
        result = proceed(call)
        self.validate_result(result)
        return result

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        self.validate_arguments(call)
        result = await proceed(call)
        self.validate_result(result)
        return result


def validate(
    params: Sequence[ValidationRule | Mapping[str, Any] | None] = (),
    returns: ValidationRule | Mapping[str, Any] | None = None,
    throw_on_error: bool = True,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de validação de parâmetros e retorno.

    Args:
        params: Regras por posição (None ignora a posição)
        returns: Regra para o valor retornado
        throw_on_error: False apenas registra as violações em WARNING

    Raises:
        ValueError: Se uma regra usar tipo desconhecido
        TypeError: Se uma regra não for ValidationRule nem dict

    Example:
        ```python
        @validate(
            params=[
                {"type": "string", "required": True, "min": 3},
                {"type": "number", "required": True, "min": 0, "max": 150},
            ],
            returns={"type": "object", "required": True},
        )
        def create_user(name: str, age: int) -> dict:
            return {"name": name, "age": age}
        ```
    """
    param_rules = tuple(ValidationRule.coerce(rule) for rule in params)
    return_rule = ValidationRule.coerce(returns)
    return policy_decorator(lambda: ValidatePolicy(param_rules, return_rule, throw_on_error))
