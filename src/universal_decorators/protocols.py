"""Protocols para extensibilidade da biblioteca.

Define interfaces que permitem implementações customizadas de:
- KeyBuilder: Geração de chaves do @super_cache
- MetricsSink: Exportação das medições do @metrics
"""

from typing import Any, Protocol


class KeyBuilder(Protocol):
    """Protocol para construtores de chaves de cache.

    Implemente este protocol para customizar como as chaves
    de cache são geradas a partir dos argumentos da chamada.
    O receiver de métodos nunca é repassado.

    Example:
        ```python
        class FirstArgKeyBuilder:
            def build_key(self, args, kwargs) -> str:
                return str(args[0]) if args else ""
        ```
    """

    def build_key(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        """Constrói chave de cache.

        Args:
            args: Argumentos posicionais
            kwargs: Argumentos nomeados

        Returns:
            Chave de cache como string
        """
        ...


class MetricsSink(Protocol):
    """Protocol para agregadores externos das métricas de chamadas.

    Recebe cada medição feita pelo @metrics. Pode agregar várias funções
    decoradas (identificadas por ``name``).
    """

    def record_call(
        self,
        name: str,
        duration: float,
        error: BaseException | None,
        labels: dict[str, str],
    ) -> None:
        """Registra uma chamada.

        Args:
            name: Nome da função medida
            duration: Duração em segundos
            error: Exceção levantada (None em caso de sucesso)
            labels: Labels configurados no decorator
        """
        ...
