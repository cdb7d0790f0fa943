"""Exceções dos decorators universais."""

from enum import Enum


class ErrorKind(Enum):
    """Tipo de falha, para tratamento exaustivo via ``err.kind``."""

    GENERIC = "generic"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    RETRY_EXHAUSTED = "retry_exhausted"


class DecoratorError(Exception):
    """Erro base levantado pelos decorators."""

    kind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str,
        decorator_name: str | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        self.decorator_name = decorator_name
        self.original_error = original_error
        super().__init__(message)


class ValidationError(DecoratorError):
    """Parâmetro ou retorno violou uma regra do @validate."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field_name: str, rule: str | None = None) -> None:
        self.field_name = field_name
        self.rule = rule
        super().__init__(message, "validate")


class RateLimitError(DecoratorError):
    """Limite de chamadas da janela atingido."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str, retry_after: float) -> None:
        self.retry_after = retry_after
        super().__init__(message, "rate_limit")


class TimeLimitError(DecoratorError):
    """Execução ultrapassou o limite de tempo (detectado após o retorno)."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, time_limit: float) -> None:
        self.time_limit = time_limit
        super().__init__(message, "time_limit")


class RetryError(DecoratorError):
    """Todas as tentativas do @async_retry falharam."""

    kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, message: str, attempts: int, last_error: BaseException | None = None) -> None:
        self.attempts = attempts
        super().__init__(message, "async_retry", last_error)

    @property
    def last_error(self) -> BaseException | None:
        """Último erro da função original."""
        return self.original_error
