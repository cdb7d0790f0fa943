"""Decorator @inherit_from: combina a função com uma função "pai"."""

import inspect
from collections.abc import Callable
from typing import Any

from ..constants import IMPLICIT_RECEIVER
from ..wrapper import AsyncProceed, Call, Policy, Proceed, policy_decorator


class InheritPolicy(Policy):
    """Chama ``parent`` com o mesmo receiver e argumentos da chamada.

    O pai só é executado quando ``call_parent_first`` é verdadeiro. Com
    ``merge_results`` e dois dicts, o resultado é ``{**pai, **próprio}``.
    """

    name = "inherit"

    def __init__(
        self,
        parent: Callable[..., Any],
        call_parent_first: bool = False,
        merge_results: bool = False,
    ) -> None:
        super().__init__()
        self._parent = parent
        self._call_parent_first = call_parent_first
        self._merge_results = merge_results

    def _call_parent(self, call: Call) -> Any:
        if call.receiver is IMPLICIT_RECEIVER:
            return self._parent(*call.args, **call.kwargs)
        return self._parent(call.receiver, *call.args, **call.kwargs)

    def _combine(self, parent_result: Any, own_result: Any) -> Any:
        if self._merge_results and isinstance(parent_result, dict) and isinstance(own_result, dict):
            return {**parent_result, **own_result}
        return own_result

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        if not self._call_parent_first:
            return proceed(call)
        parent_result = self._call_parent(call)
        return self._combine(parent_result, proceed(call))

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        if not self._call_parent_first:
            return await proceed(call)
        parent_result = self._call_parent(call)
        if inspect.isawaitable(parent_result):
            parent_result = await parent_result
        return self._combine(parent_result, await proceed(call))


def inherit_from(
    parent: Callable[..., Any],
    call_parent_first: bool = False,
    merge_results: bool = False,
) -> Callable[[Callable[..., Any]], Any]:
    """Decorator de herança funcional.

    Args:
        parent: Função pai
        call_parent_first: Executa o pai antes da função
        merge_results: Mescla resultados dict (chaves da função prevalecem)

    Raises:
        TypeError: Se parent não for chamável

    Example:
        ```python
        def base_profile(user_id):
            return {"id": user_id, "role": "user"}

        @inherit_from(base_profile, call_parent_first=True, merge_results=True)
        def admin_profile(user_id):
            return {"role": "admin"}

        admin_profile(1)  # {"id": 1, "role": "admin"}
        ```
    """
    if not callable(parent):
        raise TypeError(f"parent must be callable, got {parent!r}")
    return policy_decorator(lambda: InheritPolicy(parent, call_parent_first, merge_results))
