from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxlist = 8
_repr.maxtuple = 8
_repr.maxdict = 8


def _summarize_array(value: np.ndarray, max_items: int) -> str:
    head = f"ndarray(shape={tuple(value.shape)})"
    if value.size == 0:
        return head
    if value.size <= max_items:
        return f"{head} {np.array2string(value, precision=6, separator=', ')}"
    if not np.all(np.isfinite(value)):
        return f"{head} finite={int(np.isfinite(value).sum())}/{value.size}"
    return f"{head} min={float(value.min()):.6g} max={float(value.max()):.6g}"


def summarize(value: Any, *, max_items: int = 6, max_length: int = 300) -> str:
    """Compact, bounded rendering of call arguments and results for DEBUG logs."""

    if isinstance(value, np.ndarray):
        return _summarize_array(value, max_items)

    # graphs, trees and results are summarised by size rather than content
    order = getattr(value, "order", None)
    if isinstance(order, list) and hasattr(value, "root"):
        return f"SpanningTree(root={value.root}, size={len(order)}, weight={value.total_weight:.6g})"
    if isinstance(order, list) and hasattr(value, "coordinates"):
        return f"ProjectionResult(vertices={len(order)}, iterations={value.iterations})"
    if hasattr(value, "vertices") and hasattr(value, "weight") and callable(value.vertices):
        return f"{type(value).__name__}(vertices={len(value.vertices())})"

    if isinstance(value, (list, tuple)):
        items = [summarize(item, max_items=max_items) for item in value[:max_items]]
        if len(value) > max_items:
            items.append("...")
        body = ", ".join(items)
        return f"({body})" if isinstance(value, tuple) else f"[{body}]"

    rendered = _repr.repr(value)
    if len(rendered) > max_length:
        return rendered[:max_length] + "..."
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [summarize(arg) for arg in args]
    parts.extend(f"{key}={summarize(value)}" for key, value in kwargs.items())
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that traces entry, exit and failure at DEBUG level."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("-> %s(%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                logger.debug("!! %s raised %s: %s", qualname, type(exc).__name__, exc)
                raise
            if log_result:
                logger.debug("<- %s = %s", qualname, summarize(result))
            else:
                logger.debug("<- %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap the public and private functions defined in a module namespace."""

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):
        module_name = None
    logger = logger or logging.getLogger(module_name or __name__)
    skip_set: Set[str] = set(skip or [])

    for name, value in list(namespace.items()):
        if name in skip_set:
            continue
        if inspect.isfunction(value) and getattr(value, "__module__", None) == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)


__all__ = ["apply_debug_logging", "debug_log_call", "summarize"]
