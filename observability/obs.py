# observability/obs.py (Langfuse v3-compatible)
from __future__ import annotations

import time
import inspect
from functools import wraps
from contextlib import contextmanager
from typing import Any, Callable, ParamSpec, TypeVar, Optional, Mapping

from observability.langfuse_client import langfuse
from observability.telemetry import mark_error

# Free-text fields users type into tasks/goals, plus credentials
SENSITIVE_FIELDS = {"description", "notes", "token", "refresh_token", "client_secret"}

P = ParamSpec("P")
T = TypeVar("T")


def _dump(obj: Any) -> Any:
    try:
        md = getattr(obj, "model_dump", None)
        if callable(md):
            return md(mode="json")
        return obj
    except Exception:
        return obj


def _redact(v: Any) -> Any:
    if isinstance(v, list):
        return [_redact(x) for x in v]
    if not isinstance(v, Mapping):
        return v
    try:
        return {k: ("***" if k in SENSITIVE_FIELDS else _redact(val)) for k, val in v.items()}
    except Exception:
        return v


def _maybe_redact(v: Any, *, redact: bool) -> Any:
    return _redact(v) if redact else v


def _safe_update_current_span(*, metadata: Optional[dict[str, Any]] = None,
                              status_message: Optional[str] = None,
                              level: Optional[str] = None) -> None:
    try:
        langfuse.update_current_span(metadata=metadata or {},
                                     status_message=status_message,
                                     level=level)
    except Exception:
        # Never let observability crash business logic
        pass


def _safe_span_update(span, **fields: Any) -> None:
    try:
        span.update(**fields)
    except Exception:
        pass


def safe_update_current_span_io(*, input: Optional[Any] = None,
                                output: Optional[Any] = None,
                                redact: bool = False) -> None:
    try:
        payload = {}
        if input is not None:
            payload["input"] = _maybe_redact(_dump(input), redact=redact)
        if output is not None:
            payload["output"] = _maybe_redact(_dump(output), redact=redact)
        if payload:
            langfuse.update_current_span(**payload)
    except Exception:
        pass


def instrument_io(
    *,
    # span name (static) or builder(*args, **kwargs) -> str
    name: str | Callable[..., str],
    # metadata set at span start (static dict) or builder(*args, **kwargs) -> dict
    meta: Optional[dict] | Callable[..., Mapping[str, Any]] = None,
    # input extractor: (*args, **kwargs) -> Any
    input_fn: Optional[Callable[..., Any]] = None,
    # output extractor: (result) -> Any
    output_fn: Optional[Callable[[Any], Any]] = None,
    redact: bool = False,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorate a function so each call becomes a span, with safe input/output logging.
    """
    def deco(fn: Callable[P, T]) -> Callable[P, T]:
        is_async = inspect.iscoroutinefunction(fn)

        def _name(*args, **kwargs) -> str:
            return name(*args, **kwargs) if callable(name) else name

        def _meta(*args, **kwargs) -> dict[str, Any]:
            if callable(meta):
                return dict(meta(*args, **kwargs))
            return dict(meta or {})

        def _before(s, args, kwargs) -> None:
            _safe_span_update(s, metadata=_meta(*args, **kwargs))
            if input_fn is not None:
                safe_update_current_span_io(input=input_fn(*args, **kwargs), redact=redact)

        def _after(out, t0: float) -> None:
            if output_fn is not None:
                safe_update_current_span_io(output=output_fn(out), redact=redact)
            _safe_update_current_span(metadata={"status": "ok", "duration.ms": int((time.perf_counter() - t0) * 1000)})

        def _failed(e: Exception, s, t0: float) -> None:
            _safe_update_current_span(
                metadata={"status": "error", "error.kind": type(e).__name__,
                          "duration.ms": int((time.perf_counter() - t0) * 1000)},
                status_message=str(e), level="ERROR",
            )
            mark_error(e, kind="InstrumentedIOError", span=s)

        async def _async(*args: P.args, **kwargs: P.kwargs) -> T:  # type: ignore[misc]
            t0 = time.perf_counter()
            with langfuse.start_as_current_span(name=_name(*args, **kwargs)) as s:
                _before(s, args, kwargs)
                try:
                    out = await fn(*args, **kwargs)
                except Exception as e:
                    _failed(e, s, t0)
                    raise
                _after(out, t0)
                return out

        def _sync(*args: P.args, **kwargs: P.kwargs) -> T:
            t0 = time.perf_counter()
            with langfuse.start_as_current_span(name=_name(*args, **kwargs)) as s:
                _before(s, args, kwargs)
                try:
                    out = fn(*args, **kwargs)
                except Exception as e:
                    _failed(e, s, t0)
                    raise
                _after(out, t0)
                return out

        return wraps(fn)(_async if is_async else _sync)
    return deco


@contextmanager
def span_attrs(name: str, as_type: str = "span", **attrs: Any):
    """
    Lightweight nested observation with fixed metadata.
    """
    t0 = time.perf_counter()

    with langfuse.start_as_current_observation(name=name, as_type=as_type) as s:
        if attrs:
            _safe_span_update(s, metadata=dict(attrs))

        try:
            yield s
            dur_ms = int((time.perf_counter() - t0) * 1000)
            _safe_span_update(s, metadata={"status": "ok", "duration.ms": dur_ms})
        except Exception as e:
            dur_ms = int((time.perf_counter() - t0) * 1000)
            _safe_span_update(
                s,
                metadata={
                    "status": "error",
                    "error.kind": type(e).__name__,
                    "duration.ms": dur_ms,
                },
                status_message=str(e),
                level="ERROR",
            )
            raise


@contextmanager
def span_step(name: str, *, kind: str, **attrs):
    with span_attrs(name, **attrs) as s:
        try:
            yield s
        except Exception as e:
            # single place to mark + rethrow
            mark_error(e, kind=kind, span=s)
            raise
