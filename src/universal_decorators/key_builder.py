"""Construtor de chaves de cache a partir dos argumentos."""

from typing import Any

KEY_SEPARATOR = "|"


class DefaultKeyBuilder:
    """Construtor de chaves padrão baseado na representação em string.

    Gera chaves no formato ``arg0|arg1|...|nome=valor`` usando ``str()``
    em cada argumento. Chamadas sem argumentos usam a chave ``""``.
    Argumentos nomeados entram ordenados pelo nome.

    Objetos distintos com a mesma representação em string produzem a
    mesma chave (limitação conhecida).

    Attributes:
        separator: Separador entre argumentos
    """

    def __init__(self, separator: str = KEY_SEPARATOR) -> None:
        """Inicializa o key builder.

        Args:
            separator: Separador entre argumentos (default: "|")

        Raises:
            ValueError: Se separator for vazio
        """
        if not separator:
            raise ValueError("Separator não pode ser vazio")
        self._separator = separator

    @property
    def separator(self) -> str:
        """Separador entre argumentos."""
        return self._separator

    def build_key(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        """Constrói chave de cache.

        Args:
            args: Argumentos posicionais
            kwargs: Argumentos nomeados

        Returns:
            Chave determinística para os argumentos
        """
        key = self._positional_key(args)
        if not kwargs:
            return key

        named = self._separator.join(f"{name}={value}" for name, value in sorted(kwargs.items()))
        return f"{key}{self._separator}{named}" if args else named

    def _positional_key(self, args: tuple[Any, ...]) -> str:
        """Caminhos rápidos para 0, 1 e 2 argumentos (mesma chave do caso geral)."""
        count = len(args)
        if count == 0:
            return ""
        if count == 1:
            return str(args[0])
        if count == 2:
            return f"{args[0]}{self._separator}{args[1]}"
        return self._separator.join(str(arg) for arg in args)
