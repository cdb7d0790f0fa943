"""Testes para o decorator @validate."""

import logging

import pytest

from universal_decorators import ErrorKind, ValidationError, ValidationRule, validate


class TestValidationRule:
    """Testes para ValidationRule."""

    @pytest.mark.parametrize(
        ("rule", "value"),
        [
            ({"type": "string"}, "text"),
            ({"type": "number"}, 1.5),
            ({"type": "boolean"}, False),
            ({"type": "object"}, {"a": 1}),
            ({"type": "array"}, [1]),
            ({"type": "function"}, len),
            ({"type": int}, 3),
        ],
    )
    def test_accepted_types(self, rule: dict, value: object) -> None:
        """Valores do tipo esperado devem passar."""
        ValidationRule.coerce(rule).check(value, "param0", "Parameter 0")

    def test_bool_is_not_number(self) -> None:
        """bool não deve ser aceito como number."""
        with pytest.raises(ValidationError, match="must be of type number"):
            ValidationRule(type="number").check(True, "param0", "Parameter 0")

    def test_unknown_type(self) -> None:
        """Tipo desconhecido deve levantar ValueError."""
        with pytest.raises(ValueError):
            ValidationRule(type="date")

    def test_invalid_rule(self) -> None:
        """Regra que não é dict nem ValidationRule deve levantar TypeError."""
        with pytest.raises(TypeError):
            ValidationRule.coerce("string")  # type: ignore[arg-type]

    def test_length_bounds_for_strings(self) -> None:
        """min e max devem valer para o comprimento de strings."""
        rule = ValidationRule(type="string", min=2, max=3)

        with pytest.raises(ValidationError, match=">= 2"):
            rule.check("a", "param0", "Parameter 0")
        with pytest.raises(ValidationError, match="<= 3"):
            rule.check("abcd", "param0", "Parameter 0")

    def test_pattern(self) -> None:
        """Strings devem casar com o padrão."""
        rule = ValidationRule(pattern=r"^\d+$")

        rule.check("123", "param0", "Parameter 0")
        with pytest.raises(ValidationError) as exc_info:
            rule.check("12a", "param0", "Parameter 0")

        assert exc_info.value.rule == "pattern"

    def test_custom_predicate_message(self) -> None:
        """Predicado falso deve usar a mensagem configurada."""
        rule = ValidationRule(validate=lambda v: v % 2 == 0, message="must be even")

        with pytest.raises(ValidationError, match="must be even"):
            rule.check(3, "param0", "Parameter 0")

    def test_none_skips_other_checks(self) -> None:
        """None sem required não deve ser verificado."""
        ValidationRule(type="string", min=5).check(None, "param0", "Parameter 0")


class TestValidate:
    """Testes para validate."""

    def test_valid_call(self) -> None:
        """Chamada válida deve executar normalmente."""

        @validate(
            params=[{"type": "string", "required": True, "min": 3}, {"type": "number", "min": 0, "max": 150}],
            returns={"type": "object", "required": True},
        )
        def create_user(name: str, age: int) -> dict:
            return {"name": name, "age": age}

        assert create_user("Ana", 30) == {"name": "Ana", "age": 30}

    def test_rejects_before_execution(self) -> None:
        """Violação deve ser levantada antes de a função executar."""
        calls = []

        @validate(params=[{"type": "number", "min": 0}])
        def register(value: int) -> None:
            calls.append(value)

        with pytest.raises(ValidationError) as exc_info:
            register(-1)

        error = exc_info.value
        assert str(error) == "Parameter 0 must be >= 0"
        assert error.field_name == "param0"
        assert error.rule == "min"
        assert error.kind is ErrorKind.VALIDATION
        assert calls == []

    def test_required_missing_argument(self) -> None:
        """Argumento obrigatório ausente deve ser rejeitado."""

        @validate(params=[None, {"required": True}])
        def pair(a: int, b: int | None = None) -> tuple:
            return a, b

        with pytest.raises(ValidationError, match="Parameter 1 is required"):
            pair(1)

    def test_keyword_argument_lookup(self) -> None:
        """Argumentos passados por nome devem ser validados pela posição."""

        @validate(params=[{"type": "string"}, {"type": "number", "max": 10}])
        def pair(label: str, value: int) -> str:
            return f"{label}={value}"

        assert pair("a", value=3) == "a=3"
        with pytest.raises(ValidationError, match="Parameter 1 must be <= 10"):
            pair("a", value=11)

    def test_method_skips_receiver(self) -> None:
        """Em métodos o índice 0 é o primeiro argumento após self."""

        class Account:
            @validate(params=[{"type": "number", "min": 1}])
            def deposit(self, amount: int) -> int:
                return amount

        assert Account().deposit(5) == 5
        with pytest.raises(ValidationError, match="Parameter 0"):
            Account().deposit(amount=0)

    def test_return_validation(self) -> None:
        """Retorno inválido deve levantar ValidationError."""

        @validate(returns={"type": "string"})
        def broken() -> str:
            return 42  # type: ignore[return-value]

        with pytest.raises(ValidationError) as exc_info:
            broken()

        assert exc_info.value.field_name == "return"
        assert str(exc_info.value) == "Return value must be of type string"

    def test_throw_on_error_false_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Com throw_on_error=False a violação é apenas registrada."""

        @validate(params=[{"type": "string"}], throw_on_error=False)
        def echo(value: object) -> object:
            return value

        with caplog.at_level(logging.WARNING):
            assert echo(1) == 1

        assert "Validation failed for param0" in caplog.text

    @pytest.mark.asyncio
    async def test_async(self) -> None:
        """Funções async devem ser validadas."""

        @validate(params=[{"type": "number"}], returns={"type": "number"})
        async def double(x: int) -> int:
            return x * 2

        assert await double(2) == 4
        with pytest.raises(ValidationError):
            await double("2")
