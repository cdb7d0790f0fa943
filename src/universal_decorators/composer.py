"""
Composer applying several decorators to one function in a fixed order.

The first entry of COMPOSITION_ORDER is applied first (innermost); ``cache``
is always applied last, so a cache hit bypasses every other layer,
including metrics and logging.
"""

import logging
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

from .policies import (
    async_retry,
    debounce,
    immutable,
    inherit_from,
    log_execution,
    metrics,
    protect,
    rate_limit,
    repeat,
    super_cache,
    throttle,
    time_limit,
    validate,
    var_guard,
)

logger = logging.getLogger(__name__)

DecoratorFactory = Callable[..., Callable[[Callable[..., Any]], Any]]

COMPOSITION_ORDER: tuple[tuple[str, DecoratorFactory], ...] = (
    ("validate", validate),
    ("rate_limit", rate_limit),
    ("protect", protect),
    ("var_guard", var_guard),
    ("time_limit", time_limit),
    ("async_retry", async_retry),
    ("repeat", repeat),
    ("throttle", throttle),
    ("debounce", debounce),
    ("immutable", immutable),
    ("inherit", inherit_from),
    ("log", log_execution),
    ("metrics", metrics),
    ("cache", super_cache),
)

OPTION_NAMES = tuple(name for name, _ in COMPOSITION_ORDER)


def build_decorator(factory: DecoratorFactory, value: Any) -> Callable[[Callable[..., Any]], Any]:
    """Create a decorator from an option value.

    ``True`` uses the defaults, a dict is passed as keyword arguments, a
    tuple or list as positional arguments and any other value as the single
    positional argument.
    """
    if value is True:
        return factory()
    if isinstance(value, dict):
        return factory(**value)
    if isinstance(value, (tuple, list)):
        return factory(*value)
    return factory(value)


def _build_chain(options: dict[str, Any]) -> list[Callable[[Callable[..., Any]], Any]]:
    unknown = set(options) - set(OPTION_NAMES)
    if unknown:
        raise TypeError(f"Unknown compose options: {', '.join(sorted(unknown))}")

    # Decorators are built up front so invalid configuration fails at decoration time
    return [build_decorator(factory, options[name]) for name, factory in COMPOSITION_ORDER if options.get(name)]


def compose(func: Callable[..., Any] | None = None, **options: Any) -> Any:
    """Apply the requested decorators in the fixed composition order.

    Usable with or without parentheses, on functions and methods.

    Args:
        func: Function to decorate (when used without parentheses)
        **options: Option per decorator name (see COMPOSITION_ORDER)

    Returns:
        Decorated function, or a decorator when func is None

    Raises:
        TypeError: If an option name is unknown
        ValueError: If a decorator configuration is invalid

    Example:
        ```python
        @compose(validate={"params": [{"type": "number"}]}, metrics=True, cache="fast")
        def square(n):
            return n * n
        ```
    """
    chain = _build_chain(options)

    def decorator(target: Callable[..., Any]) -> Any:
        logger.debug(f"Composing {len(chain)} decorators on {getattr(target, '__qualname__', target)!r}")
        wrapped = target
        for apply in chain:
            wrapped = apply(wrapped)
        return wrapped

    if func is not None:
        return decorator(func)
    return decorator


super_matrix = compose


def decorate(func: Callable[..., Any], *decorators: Callable[[Callable[..., Any]], Any]) -> Any:
    """Apply decorators to func from left (innermost) to right (outermost)."""
    wrapped = func
    for apply in decorators:
        wrapped = apply(wrapped)
    return wrapped


def _cache(func: Callable[..., Any], mode: str | None = None, maxsize: int | None = None) -> Any:
    return super_cache(mode, maxsize)(func)


def _protect(func: Callable[..., Any], level: str | None = None, silent: bool = False) -> Any:
    return protect(level, silent=silent)(func)


def _log(func: Callable[..., Any], level: str | None = None, **kwargs: Any) -> Any:
    return log_execution(level, **kwargs)(func)


def _debounce(func: Callable[..., Any], delay: float = 0.3) -> Any:
    return debounce(delay)(func)


def _throttle(func: Callable[..., Any], interval: float = 1.0) -> Any:
    return throttle(interval)(func)


# Direct wrappers: wrap_function.cache(fn, "fast")
wrap_function = SimpleNamespace(
    cache=_cache,
    protect=_protect,
    log=_log,
    debounce=_debounce,
    throttle=_throttle,
)
