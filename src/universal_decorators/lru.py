"""Cache LRU em memória com contagem de hits e misses."""

from collections import OrderedDict
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any

from .constants import DEFAULT_CACHE_SIZE, MISSING


@dataclass(frozen=True)
class CacheInfo:
    """Estatísticas de um LRUCache.

    Attributes:
        hits: Leituras encontradas no cache
        misses: Leituras não encontradas
        maxsize: Capacidade máxima
        currsize: Quantidade atual de entradas
        ratio: Percentual de hits com uma casa decimal (0.0 sem acessos)
    """

    hits: int
    misses: int
    maxsize: int
    currsize: int
    ratio: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class LRUCache:
    """Cache de capacidade fixa com despejo do item menos recentemente usado.

    A ordem do OrderedDict é a ordem de recência: o item mais recente fica
    no final. ``get`` e ``set`` movem a chave para o final; ao inserir uma
    chave nova com o cache cheio, o primeiro item é removido.

    Capacidade 0 desativa o cache (``set`` não armazena nada).

    Example:
        ```python
        cache = LRUCache(maxsize=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")       # 1, "a" passa a ser o mais recente
        cache.set("c", 3)    # remove "b"
        cache.get("b")       # MISSING
        ```
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE) -> None:
        """Inicializa o cache.

        Args:
            maxsize: Capacidade máxima (0 desativa o cache)

        Raises:
            ValueError: Se maxsize for negativo
        """
        if maxsize < 0:
            raise ValueError(f"maxsize deve ser >= 0, recebido {maxsize}")

        self._maxsize = maxsize
        self._data: OrderedDict[str, Any] = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    @property
    def maxsize(self) -> int:
        """Capacidade máxima."""
        return self._maxsize

    def get(self, key: str, default: Any = MISSING) -> Any:
        """Busca valor e marca a chave como mais recente.

        Args:
            key: Chave de cache
            default: Retorno em caso de miss (default: MISSING)

        Returns:
            Valor armazenado ou ``default``
        """
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                self._hits += 1
                return self._data[key]
            self._misses += 1
            return default

    def set(self, key: str, value: Any) -> None:
        """Armazena valor, removendo o menos recente se o cache estiver cheio."""
        if self._maxsize == 0:
            return

        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            elif len(self._data) >= self._maxsize:
                self._data.popitem(last=False)
            self._data[key] = value

    def delete(self, key: str) -> bool:
        """Remove uma chave. Retorna True se ela existia."""
        with self._lock:
            return self._data.pop(key, MISSING) is not MISSING

    def info(self) -> CacheInfo:
        """Retorna estatísticas atuais."""
        with self._lock:
            total = self._hits + self._misses
            ratio = round(self._hits / total * 100, 1) if total > 0 else 0.0
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                maxsize=self._maxsize,
                currsize=len(self._data),
                ratio=ratio,
            )

    def clear(self) -> None:
        """Remove todas as entradas e zera os contadores."""
        with self._lock:
            self._data.clear()
            self._hits = 0
            self._misses = 0

    def keys(self) -> list[str]:
        """Chaves em ordem de recência (menos recente primeiro)."""
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        # Não altera recência nem contadores
        return key in self._data
