# tests/detector/test_scan_session.py
import pytest
from pydantic import ValidationError

from conftest import node, run, solid, text
from detector.controllers.scan_controller import CancellationToken, ScanSession, SessionState
from detector.messages import (
    FontSizeEditRequested, Navigate, ScanRequested, ScanResponse, SelectionChanged, parse_event
)
from detector.model import IssueType

WHITE = solid(255, 255, 255)


@pytest.fixture
def session(command_host):
    """Een sessie over een klein document met twee kleine teksten en een te kleine knop."""
    host = command_host(
        node("frame", box=(0, 0, 400, 400), fills=[WHITE], children=[
            text("t1", font_size=9),
            text("t2", font_size=10),
            node("btn", "FRAME", name="btn", box=(300, 300, 20, 20)),
        ]),
        selection=["t2"],
    )
    return ScanSession(host.document, host)


# --- Event parsing ---

def test_parse_event_variants():
    assert isinstance(parse_event({"event": "scan", "mode": "selection"}), ScanRequested)
    assert isinstance(parse_event({"event": "navigate", "node_id": "x"}), Navigate)
    changed = parse_event({"event": "selection-changed", "nodes": [{"id": "a"}, "b"]})
    assert isinstance(changed, SelectionChanged)
    assert changed.nodes == ["a", "b"]


@pytest.mark.parametrize("payload", [
    {"event": "unknown"},
    {"event": "scan", "mode": "everything"},
    {"event": "font-size-edit-requested", "node_id": "t1", "font_size": 0},
    {"event": "font-size-edit-requested", "node_id": "t1", "font_size": float("inf")},
])
def test_parse_event_rejects_bad_payloads(payload):
    with pytest.raises(ValidationError):
        parse_event(payload)


# --- Scans ---

def test_full_scan_returns_to_idle(session):
    response = run(session.dispatch({"event": "scan", "mode": "full"}))

    assert isinstance(response, ScanResponse)
    assert [(i.node_id, i.type) for i in response.issues] == [
        ("t1", IssueType.TYPOGRAPHY),
        ("t2", IssueType.TYPOGRAPHY),
        ("btn", IssueType.TOUCH_TARGET_SIZE),
    ]
    assert session.state == SessionState.IDLE


def test_selection_scan_uses_host_selection(session):
    response = run(session.dispatch(ScanRequested(mode="selection")))
    assert [i.node_id for i in response.issues] == ["t2"]


def test_selection_scan_with_empty_selection(session):
    session.document.selection = []
    response = run(session.dispatch(ScanRequested(mode="selection")))
    assert response == ScanResponse()


def test_response_message_form(session):
    message = run(session.dispatch({"event": "scan"})).to_message()
    assert message["issues"][0]["type"] == "Typography"
    assert message["issues"][0]["severity"] == "major"
    assert message["undetermined"] == []


# --- Quick check ---

def test_selection_change_ignored_without_quick_check(session):
    assert run(session.dispatch({"event": "selection-changed", "nodes": ["t1"]})) is None
    assert session.state == SessionState.IDLE


def test_quick_check_lifecycle(session):
    run(session.dispatch({"event": "quickcheck-started"}))
    assert session.state == SessionState.AWAITING_SELECTION_CHANGE

    response = run(session.dispatch({"event": "selection-changed", "nodes": ["t1"]}))
    assert [i.node_id for i in response.issues] == ["t1"]
    assert session.state == SessionState.AWAITING_SELECTION_CHANGE

    # Lege selectie: direct een leeg antwoord, zonder scan.
    session.engine.scan_nodes = None
    assert run(session.dispatch({"event": "selection-changed", "nodes": []})) == ScanResponse()

    run(session.dispatch({"event": "quickcheck-cancelled"}))
    assert session.state == SessionState.CANCELLED
    assert session.token.is_cancelled
    assert run(session.dispatch({"event": "selection-changed", "nodes": ["t1"]})) is None


def test_cancel_during_scan_discards_result(session):
    """Een scan die loopt tijdens het annuleren mag afmaken, maar het resultaat vervalt."""
    run(session.dispatch({"event": "quickcheck-started"}))
    original_scan = session.engine.scan_nodes

    async def cancelling_scan(roots, progress=None):
        outcome = await original_scan(roots, progress=progress)
        await session.dispatch({"event": "quickcheck-cancelled"})
        return outcome

    session.engine.scan_nodes = cancelling_scan
    assert run(session.dispatch({"event": "selection-changed", "nodes": ["t1"]})) is None
    assert session.state == SessionState.CANCELLED


def test_sessions_do_not_share_quick_check_state(command_host):
    root = node("frame", children=[text("t1", font_size=9)])
    first = ScanSession(command_host(root).document, command_host(root))
    second = ScanSession(command_host(root).document, command_host(root))

    run(first.dispatch({"event": "quickcheck-started"}))
    assert first.quick_check is True
    assert second.quick_check is False
    assert second.state == SessionState.IDLE


def test_cancellation_token():
    token = CancellationToken()
    assert token.is_cancelled is False
    token.cancel()
    assert token.is_cancelled is True


# --- Commands ---

def test_font_size_edit_is_forwarded_to_host(session):
    run(session.dispatch(FontSizeEditRequested(node_id="t1", font_size=12)))
    session.host.request_font_size_change.assert_called_once_with("t1", 12)
    # Het document zelf blijft ongewijzigd; de host voert de wijziging uit.
    assert session.document.get_node("t1").font_size == 9


def test_font_size_edit_on_non_text_is_ignored(session):
    run(session.dispatch({"event": "font-size-edit-requested", "node_id": "btn", "font_size": 12}))
    session.host.request_font_size_change.assert_not_called()


def test_navigate_selects_then_reveals(session):
    run(session.dispatch({"event": "navigate", "node_id": "btn"}))
    session.host.request_select.assert_called_once_with("btn")
    session.host.request_reveal_in_viewport.assert_called_once_with("btn")


def test_navigate_unknown_node_is_ignored(session):
    run(session.dispatch(Navigate(node_id="ghost")))
    session.host.request_select.assert_not_called()
