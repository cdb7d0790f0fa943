"""
Wrapper factory shared by every decorator.

A decorator is a Policy (the behavior) applied to a callable through a
PolicyWrapper (the calling convention). The wrapper:

- keeps the original calling contract and metadata
- supports functions and methods via the descriptor protocol, passing the
  receiver down to every nested wrapper explicitly
- exposes the policy's inspection functions as attributes
- dispatches to the sync or async path of the policy
"""

import functools
import inspect
import logging
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from threading import RLock
from typing import Any, Generic, TypeVar

from .constants import IMPLICIT_RECEIVER

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
S = TypeVar("S")


class TargetKind(Enum):
    """How the wrapped callable is being used."""

    PLAIN_FUNCTION = "plain_function"
    METHOD = "method"


@dataclass(frozen=True)
class WrapTarget:
    """Explicit description of what a policy is wrapping.

    Starts as PLAIN_FUNCTION and becomes METHOD when the wrapper is
    assigned in a class body (``__set_name__``).
    """

    kind: TargetKind
    name: str
    owner: type | None = None
    func: Callable[..., Any] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def plain(cls, func: Callable[..., Any]) -> "WrapTarget":
        return cls(TargetKind.PLAIN_FUNCTION, getattr(func, "__name__", "wrapped"), func=func)

    @classmethod
    def method(cls, owner: type, name: str, func: Callable[..., Any] | None = None) -> "WrapTarget":
        return cls(TargetKind.METHOD, name, owner, func)

    @property
    def qualified_name(self) -> str:
        """Name used in log and error messages."""
        if self.owner is not None:
            return f"{self.owner.__name__}.{self.name}"
        return self.name


@dataclass(frozen=True)
class Call:
    """One invocation flowing through the wrapper layers."""

    receiver: Any
    args: tuple[Any, ...]
    kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def is_method_call(self) -> bool:
        return self.receiver is not IMPLICIT_RECEIVER

    def with_arguments(self, args: tuple[Any, ...], kwargs: dict[str, Any] | None = None) -> "Call":
        """Return a copy of this call with replaced arguments."""
        return replace(self, args=args, kwargs=self.kwargs if kwargs is None else kwargs)


Proceed = Callable[[Call], Any]
AsyncProceed = Callable[[Call], Awaitable[Any]]


class Policy:
    """Base class for behaviors applied by PolicyWrapper.

    Subclasses override ``invoke`` (sync path) and ``invoke_async``
    (coroutine path). ``proceed`` runs the next inner layer.
    State kept by a policy is private to the one wrapper it is bound to.
    """

    name = "policy"

    def __init__(self) -> None:
        self.target = WrapTarget(TargetKind.PLAIN_FUNCTION, "wrapped")

    def bind(self, target: WrapTarget) -> None:
        """Receive the (possibly updated) wrap target."""
        self.target = target

    def wraps_async(self, inner_is_async: bool) -> bool:
        """Whether the resulting wrapper must be awaited by callers."""
        return inner_is_async

    def invoke(self, call: Call, proceed: Proceed) -> Any:
        return proceed(call)

    async def invoke_async(self, call: Call, proceed: AsyncProceed) -> Any:
        return await proceed(call)

    def accessors(self) -> dict[str, Callable[..., Any]]:
        """Inspection functions attached to the wrapper."""
        return {}


def is_async_callable(func: Any) -> bool:
    """Check whether calling func produces an awaitable."""
    if isinstance(func, PolicyWrapper):
        return func.is_async
    return inspect.iscoroutinefunction(func)


class PolicyWrapper:
    """Callable produced by applying a Policy to a function.

    Implements the descriptor protocol: accessed on an instance it returns a
    BoundPolicyMethod carrying the instance as receiver.

    Attributes missing on this wrapper are looked up on the wrapped inner
    callable, so accessors such as ``get_metrics`` stay reachable when
    several decorators are stacked.
    """

    def __init__(self, func: Callable[..., Any], policy: Policy) -> None:
        self._func = func
        self._policy = policy
        self._is_async = policy.wraps_async(is_async_callable(func))

        # Preserva metadados sem copiar o __dict__ de wrappers internos
        functools.update_wrapper(self, func, updated=())

        policy.bind(WrapTarget.plain(func))
        for name, accessor in policy.accessors().items():
            setattr(self, name, accessor)

    @property
    def is_async(self) -> bool:
        """True when calls return a coroutine."""
        return self._is_async

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def target(self) -> WrapTarget:
        return self._policy.target

    def __set_name__(self, owner: type, name: str) -> None:
        """Descriptor protocol: mark the target as a method of owner."""
        self._set_method_target(owner, name)

    def _set_method_target(self, owner: type, name: str) -> None:
        self._policy.bind(WrapTarget.method(owner, name, self._func))
        if isinstance(self._func, PolicyWrapper):
            self._func._set_method_target(owner, name)

    def __get__(self, instance: Any, owner: type | None = None) -> "PolicyWrapper | BoundPolicyMethod":
        """Descriptor protocol: return bound method or the wrapper itself."""
        if instance is None:
            return self
        return BoundPolicyMethod(self, instance)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._dispatch(Call(IMPLICIT_RECEIVER, args, kwargs))

    def _dispatch(self, call: Call) -> Any:
        if self._is_async:
            return self._policy.invoke_async(call, self._proceed_async)
        return self._policy.invoke(call, self._proceed)

    def _proceed(self, call: Call) -> Any:
        func = self._func
        if isinstance(func, PolicyWrapper):
            return func._dispatch(call)
        if call.receiver is IMPLICIT_RECEIVER:
            return func(*call.args, **call.kwargs)
        return func(call.receiver, *call.args, **call.kwargs)

    async def _proceed_async(self, call: Call) -> Any:
        result = self._proceed(call)
        if inspect.isawaitable(result):
            return await result
        return result

    def __getattr__(self, name: str) -> Any:
        # Só é chamado quando o atributo não existe nesta camada
        if name.startswith("__"):
            raise AttributeError(name)
        func = self.__dict__.get("_func")
        if func is None:
            raise AttributeError(name)
        return getattr(func, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} @{self._policy.name} {self.target.qualified_name}>"


class BoundPolicyMethod:
    """PolicyWrapper bound to an instance (the call receiver)."""

    def __init__(self, wrapper: PolicyWrapper, instance: Any) -> None:
        self._wrapper = wrapper
        self._instance = instance

        self.__name__ = wrapper.__name__
        self.__doc__ = wrapper.__doc__

    @property
    def __self__(self) -> Any:
        return self._instance

    @property
    def __func__(self) -> PolicyWrapper:
        return self._wrapper

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._wrapper._dispatch(Call(self._instance, args, kwargs))

    def __getattr__(self, name: str) -> Any:
        wrapper = self.__dict__.get("_wrapper")
        if wrapper is None:
            raise AttributeError(name)
        return getattr(wrapper, name)

    def __repr__(self) -> str:
        return f"<bound {self._wrapper!r} of {self._instance!r}>"


def wrap(func: Any, policy: Policy) -> Any:
    """Apply policy to func.

    Targets that cannot be wrapped (non-callables, ``staticmethod`` or
    ``classmethod`` objects) are returned unchanged with a warning instead
    of raising.

    Args:
        func: Function or method to wrap
        policy: Behavior to apply

    Returns:
        PolicyWrapper, or func itself when unsupported
    """
    if isinstance(func, (staticmethod, classmethod)) or not callable(func):
        logger.warning(f"[{policy.name}] Unsupported decorator target, returning it unwrapped: {func!r}")
        return func

    logger.debug(f"Applying @{policy.name} to {getattr(func, '__qualname__', func)!r}")
    return PolicyWrapper(func, policy)


def policy_decorator(policy_factory: Callable[[], Policy]) -> Callable[[F], Any]:
    """Build a decorator creating one fresh policy per decorated function."""

    def decorator(func: F) -> Any:
        return wrap(func, policy_factory())

    return decorator


class ReceiverRegistry(Generic[S]):
    """Per-receiver state owned by a single policy.

    State is keyed by receiver identity. Weak-referenceable receivers have
    their state dropped when they are garbage collected; other receivers
    (including the implicit receiver of plain functions) are pinned until
    ``clear()``.
    """

    def __init__(self, factory: Callable[[], S]) -> None:
        self._factory = factory
        self._states: dict[int, S] = {}
        self._pinned: dict[int, Any] = {}
        # Reentrante: o finalizer pode rodar durante um get()
        self._lock = RLock()

    def get(self, receiver: Any) -> S:
        """Return the state for receiver, creating it on first use."""
        key = id(receiver)
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = self._factory()
                self._states[key] = state
                self._track(receiver, key)
            return state

    def _track(self, receiver: Any, key: int) -> None:
        try:
            weakref.finalize(receiver, self._discard, key)
        except TypeError:
            self._pinned[key] = receiver

    def _discard(self, key: int) -> None:
        with self._lock:
            self._states.pop(key, None)
            self._pinned.pop(key, None)

    def states(self) -> list[S]:
        with self._lock:
            return list(self._states.values())

    def clear(self) -> None:
        """Drop the state of every receiver."""
        with self._lock:
            self._states.clear()
            self._pinned.clear()

    def __len__(self) -> int:
        return len(self._states)
