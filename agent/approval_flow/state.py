# state.py
from __future__ import annotations

from typing import TypedDict, Any, Dict, List, Optional


class ApprovalState(TypedDict, total=False):
    """
    Human-in-the-loop approval of AI-proposed actions.

    Input:
    - owner_id / conversation_id: whose stores the actions touch
    - proposals: raw action mappings from the assistant

    Working:
    - actions: ActionDescriptor wire dicts (id, type, data, status?, error?)
    - decision: last parsed reply {"kind": approve_all|decline_all|approve|decline|unknown, "action_id"?}

    Output (per turn):
    - messages: assistant replies produced this turn
    - batch: wire form of the last executed BatchResult
    """
    owner_id: str
    conversation_id: Optional[str]
    proposals: List[Dict[str, Any]]

    actions: List[Dict[str, Any]]
    decision: Optional[Dict[str, Any]]

    messages: List[str]
    batch: Optional[Dict[str, Any]]
