# telemetry.py
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence
from langfuse import propagate_attributes
from observability.langfuse_client import langfuse

Json = Dict[str, Any]


def owner_trace_attrs(
    owner_id: str,
    *,
    conversation_id: Optional[str] = None,
    tags: Sequence[str] = (),
    extra_metadata: Optional[Json] = None,
):
    """
    Minimal propagation for one engine call:
      - owner_id becomes the trace user, conversation_id the session
      - tags are de-duplicated, blanks dropped
      - never serializes action payloads
    """
    if not owner_id:
        raise ValueError("owner_id is required for trace attributes")

    seen = set()
    clean_tags: list[str] = []
    for t in tags:
        s = str(getattr(t, "value", t) or "").strip()
        if s and s not in seen:
            clean_tags.append(s)
            seen.add(s)

    return propagate_attributes(
        user_id=owner_id,
        session_id=conversation_id,
        tags=clean_tags,
        metadata=dict(extra_metadata or {}),
    )


def mark_error(exc: Exception, *, kind: str = "UnhandledError", span=None, extra: Optional[Json] = None) -> None:
    """
    Minimal error marking; no payload dumping. Add explicit `extra` if needed.
    """
    meta: Json = {"status": "error", "error.kind": kind, "error.type": type(exc).__name__}
    code = getattr(exc, "code", None)
    if code:
        meta["error.code"] = code
    if extra:
        meta["error.extra"] = extra

    if span is not None:
        try:
            span.update(metadata=meta)
        except Exception:
            pass

    try:
        langfuse.update_current_span(
            metadata=meta,
            status_message=str(exc),
            level="ERROR",
        )
    except Exception:
        pass
