"""
Decorator policies.

Each module provides a Policy subclass (the behavior) and the public
decorator function that wraps a callable with it.
"""

from .caching import CachePolicy, resolve_cache_size, super_cache
from .execution_log import LogPolicy, log_execution
from .inheritance import InheritPolicy, inherit_from
from .instrumentation import MetricsPolicy, metrics
from .protection import ImmutablePolicy, ProtectPolicy, VarGuardPolicy, freeze, immutable, protect, var_guard
from .rate_limit import RateLimitPolicy, RateWindow, rate_limit, resolve_window
from .retry import AsyncRetryPolicy, RepeatPolicy, async_retry, repeat
from .timing import DebouncePolicy, ThrottlePolicy, TimeLimitPolicy, debounce, throttle, time_limit
from .validation import ValidatePolicy, ValidationRule, validate

__all__ = [
    "AsyncRetryPolicy",
    "CachePolicy",
    "DebouncePolicy",
    "ImmutablePolicy",
    "InheritPolicy",
    "LogPolicy",
    "MetricsPolicy",
    "ProtectPolicy",
    "RateLimitPolicy",
    "RateWindow",
    "RepeatPolicy",
    "ThrottlePolicy",
    "TimeLimitPolicy",
    "ValidatePolicy",
    "ValidationRule",
    "VarGuardPolicy",
    "async_retry",
    "debounce",
    "freeze",
    "immutable",
    "inherit_from",
    "log_execution",
    "metrics",
    "protect",
    "rate_limit",
    "repeat",
    "resolve_cache_size",
    "resolve_window",
    "super_cache",
    "throttle",
    "time_limit",
    "validate",
    "var_guard",
]
