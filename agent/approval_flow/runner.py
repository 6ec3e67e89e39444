# agent/approval_flow/runner.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langgraph.types import Command

logger = logging.getLogger(__name__)


def _pending_interrupts(app, config) -> tuple:
    snapshot = app.get_state(config)
    if snapshot is None:
        return ()
    return getattr(snapshot, "interrupts", ()) or ()


def handle_approval_turn(
    app,
    thread_id: str,
    user_reply: Any | None = None,
    base_state: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    One user turn of the approval flow.

    - Thread paused on a decision -> resume with `user_reply` (text or {"decision", "action_id"}).
    - Otherwise                   -> fresh run from `base_state` ({owner_id, proposals, conversation_id?}).

    Returns:
        {
          "status": "interrupt" | "ok",
          "interrupt": Interrupt | None,
          "state": dict,               # graph values after this turn
        }
    """
    config = {"configurable": {"thread_id": thread_id}}

    if _pending_interrupts(app, config):
        resume_value = user_reply if isinstance(user_reply, dict) else ("" if user_reply is None else str(user_reply))
        logger.info("[ACTIONS] Resuming approval thread %s", thread_id)
        result = app.invoke(Command(resume=resume_value), config=config)
    else:
        result = app.invoke(dict(base_state or {}), config=config)

    if isinstance(result, dict) and result.get("__interrupt__"):
        interrupts = _pending_interrupts(app, config)
        return {
            "status": "interrupt",
            "interrupt": interrupts[0] if interrupts else None,
            "state": dict(app.get_state(config).values),
        }

    return {"status": "ok", "interrupt": None, "state": result}
