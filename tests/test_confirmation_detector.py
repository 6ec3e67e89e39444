import pytest

from agent.confirmation_detector import describe_pending_actions, detect_confirmation, is_likely_new_request


@pytest.mark.parametrize("message,pattern,confidence", [
    ("Yes", "strong_affirmative", 1.0),
    ("  okay ", "strong_affirmative", 1.0),
    ("go ahead", "action_phrase", 1.0),
    ("Let's do it", "action_phrase", 1.0),
    ("yes, please", "contextual_affirmative", 0.9),
    ("ok go ahead", "contextual_affirmative", 0.9),
    ("yes add them", "partial_word", 0.8),
])
def test_confirmations(message, pattern, confidence):
    signal = detect_confirmation(message, has_pending=True)
    assert signal.type == "confirm"
    assert signal.pattern == pattern
    assert signal.confidence == confidence


@pytest.mark.parametrize("message,pattern", [
    ("no", "decline"),
    ("Never mind", "decline"),
    ("no, cancel", "contextual_decline"),
    ("not now", "contextual_decline"),
    ("please cancel those", "partial_word"),
])
def test_declines(message, pattern):
    signal = detect_confirmation(message, has_pending=True)
    assert signal.type == "decline"
    assert signal.pattern == pattern


def test_nothing_pending():
    signal = detect_confirmation("yes", has_pending=False)
    assert signal.type == "none"
    assert signal.reason == "no_pending_actions"


@pytest.mark.parametrize("message,reason", [
    ("", "invalid_message"),
    (None, "invalid_message"),
    ("yes " + "and also some more words " * 3, "message_too_long"),
    ("what's the weather like", "no_match"),
])
def test_no_signal(message, reason):
    assert detect_confirmation(message, has_pending=True).reason == reason


@pytest.mark.parametrize("message,expected", [
    ("create a task for tomorrow", True),
    ("Can you list my goals", True),
    ("is that all?", True),
    ("yes", False),
    ("", False),
])
def test_is_likely_new_request(message, expected):
    assert is_likely_new_request(message) is expected


def test_describe_pending_actions():
    actions = [{"type": "create_task"}, {"type": "create_task"}, {"type": "sync_calendar_event"}]
    assert describe_pending_actions(actions) == "2 create tasks, 1 sync calendar_event"
    assert describe_pending_actions([]) == "No pending actions"
