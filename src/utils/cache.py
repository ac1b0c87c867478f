"""
Cache em memória das listagens de categorias.

Duas entradas independentes, cada uma com seu próprio lock e relógio de TTL:

- árvore: categorias pai (com um nível de filhos) + contagem de produtos por ID;
- subcategorias: lista plana de categorias com pai, já com o nome do pai.

Os handlers de leitura fazem read-through (consultam o cache, buscam no banco
em caso de miss e então chamam ``set_*``). Toda escrita em categorias chama
``invalidate()``, que descarta as duas entradas de uma vez.
"""
import logging
import threading
import time
from typing import Annotated, Any, Callable, Dict, List, NamedTuple, Optional

from cachetools import TTLCache
from fastapi import Depends, Request

logger = logging.getLogger(__name__)

# 5 minutos
CATEGORY_CACHE_TTL = 300


class TTLSlot:
    """Célula única com expiração, protegida pelo seu próprio lock."""

    _KEY = "value"

    def __init__(self, ttl: float, timer: Callable[[], float] = time.monotonic):
        # maxsize=1: um único valor por célula, substituído a cada set()
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._cache.ttl

    def get(self) -> Optional[Any]:
        # get() só devolve o valor enquanto timer() < fetched_at + ttl
        with self._lock:
            return self._cache.get(self._KEY)

    def set(self, value: Any) -> None:
        with self._lock:
            self._cache[self._KEY] = value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class CategoryTree(NamedTuple):
    parents: List[Any]
    product_counts: Dict[str, int]


class CategoryCache:
    def __init__(
        self,
        ttl: float = CATEGORY_CACHE_TTL,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._tree = TTLSlot(ttl, timer)
        self._subs = TTLSlot(ttl, timer)

    @property
    def ttl(self) -> float:
        return self._tree.ttl

    def get_tree(self) -> Optional[CategoryTree]:
        tree = self._tree.get()
        logger.debug("Cache de árvore de categorias: %s", "miss" if tree is None else "hit")
        return tree

    def set_tree(self, parents: List[Any], product_counts: Dict[str, int]) -> None:
        # Pais e contagens entram como uma única tupla: leitores nunca misturam
        # campos de duas gravações diferentes
        self._tree.set(CategoryTree(parents, product_counts))

    def get_subs(self) -> Optional[List[Any]]:
        subs = self._subs.get()
        logger.debug("Cache de subcategorias: %s", "miss" if subs is None else "hit")
        return subs

    def set_subs(self, data: List[Any]) -> None:
        self._subs.set(data)

    def invalidate(self) -> None:
        """
        Invalida a árvore e depois as subcategorias.
        Deve ser chamado após qualquer criação, alteração ou exclusão de categoria.
        """
        self._tree.clear()
        self._subs.clear()
        logger.info("Cache de categorias invalidado")


def get_category_cache(request: Request) -> CategoryCache:
    return request.app.state.category_cache


def get_category_stats_cache(request: Request) -> TTLSlot:
    return request.app.state.category_stats_cache


CategoryCacheDep = Annotated[CategoryCache, Depends(get_category_cache)]
CategoryStatsCacheDep = Annotated[TTLSlot, Depends(get_category_stats_cache)]
