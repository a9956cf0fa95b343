# tests/detector/test_touch_targets.py
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import build, node, run, text
from detector.host import ComponentResolutionError
from detector.model import DetectionSettings, IssueType, Severity
from detector.services.touch_target_service import TouchTargetKind, TouchTargetService


def service_for(doc, host=None, **settings):
    return TouchTargetService(doc, host or MagicMock(), DetectionSettings(**settings))


@pytest.fixture
def pair_doc():
    """Twee knoppen naast elkaar met 8px ruimte en een derde met 7px ruimte eronder."""
    return build(node("root", children=[
        node("a", "RECTANGLE", name="btn-a", box=(0, 0, 44, 44)),
        node("b", "RECTANGLE", name="btn-b", box=(52, 0, 44, 44)),
        node("c", "RECTANGLE", name="btn-c", box=(0, 51, 44, 44)),
    ]))


def test_candidate_by_own_name():
    doc = build(node("root", children=[
        node("b1", "FRAME", name="Submit-Button"),
        node("l1", "FRAME", name="footer link"),
        node("x1", "FRAME", name="Card"),
    ]))
    service = service_for(doc)
    assert run(service.is_touch_target_candidate(doc.get_node("b1"))) is True
    assert run(service.is_touch_target_candidate(doc.get_node("l1"))) is True
    assert run(service.is_touch_target_candidate(doc.get_node("x1"))) is False


def test_text_node_is_never_candidate_by_name():
    doc = build(node("root", children=[text("t1", name="Button label")]))
    assert run(service_for(doc).is_touch_target_candidate(doc.get_node("t1"))) is False


def test_instance_candidate_through_master_component():
    doc = build(node("root", children=[
        node("cmp", "COMPONENT", name="Primary BTN"),
        node("inst", "INSTANCE", name="Instance 7", mainComponentId="cmp"),
    ]))
    host = MagicMock()
    host.resolve_master_component = AsyncMock(return_value=doc.get_node("cmp"))

    assert run(service_for(doc, host).is_touch_target_candidate(doc.get_node("inst"))) is True
    host.resolve_master_component.assert_awaited_once()


def test_instance_resolution_failure_propagates():
    doc = build(node("root", children=[node("inst", "INSTANCE", name="Instance 7", mainComponentId="gone")]))
    host = MagicMock()
    host.resolve_master_component = AsyncMock(side_effect=ComponentResolutionError("gone"))

    with pytest.raises(ComponentResolutionError):
        run(service_for(doc, host).is_touch_target_candidate(doc.get_node("inst")))


@pytest.mark.parametrize("box, expected", [
    ((0, 0, 40, 50), True),
    ((0, 0, 50, 40), True),
    ((0, 0, 44, 44), False),
    ((0, 0, 100, 60), False),
])
def test_is_too_small(box, expected):
    doc = build(node("root", children=[node("btn", "RECTANGLE", name="btn", box=box)]))
    assert service_for(doc).is_too_small(doc.get_node("btn"), min_size=44) is expected


def test_node_without_box_is_not_too_small():
    doc = build(node("root", children=[node("btn", "GROUP", name="btn")]))
    assert service_for(doc).is_too_small(doc.get_node("btn")) is False


def test_gap_equal_to_minimum_is_not_too_close(pair_doc):
    service = service_for(pair_doc)
    a, b = pair_doc.get_node("a"), pair_doc.get_node("b")
    assert service.is_too_close(b, [a, b], min_spacing=8) is False


def test_gap_below_minimum_is_too_close(pair_doc):
    """Verticale ruimte van 7px tussen 'a' en 'c' is te weinig."""
    service = service_for(pair_doc)
    a, c = pair_doc.get_node("a"), pair_doc.get_node("c")
    assert service.is_too_close(c, [a, c], min_spacing=8) is True


def test_far_away_nodes_are_not_compared():
    doc = build(node("root", children=[
        node("a", "RECTANGLE", name="btn-a", box=(0, 0, 44, 44)),
        node("d", "RECTANGLE", name="btn-d", box=(46, 46, 44, 44)),
    ]))
    service = service_for(doc)
    assert service.is_too_close(doc.get_node("a"), [doc.get_node("a"), doc.get_node("d")]) is False


def test_size_issue_payload():
    doc = build(node("root", children=[node("btn", "FRAME", name="submit-button", box=(0, 0, 30, 30))]))
    issue = service_for(doc).build_issue(doc.get_node("btn"), TouchTargetKind.SIZE)

    assert issue.type == IssueType.TOUCH_TARGET_SIZE
    assert issue.severity == Severity.MINOR
    assert issue.node_data.required_size == "44 x 44px"
    assert issue.node_data.width == 30
    assert "44x44px" in issue.description


def test_spacing_issue_description():
    doc = build(node("root", children=[node("btn", "FRAME", name="btn", box=(0, 0, 30, 30))]))
    issue = service_for(doc).build_issue(doc.get_node("btn"), TouchTargetKind.SPACING)
    assert issue.type == IssueType.TOUCH_TARGET_SPACING
    assert "8px" in issue.description


def test_build_issue_without_name_returns_none():
    doc = build(node("root", children=[{"id": "anon", "type": "FRAME", "x": 0, "y": 0, "width": 5, "height": 5}]))
    assert service_for(doc).build_issue(doc.get_node("anon"), TouchTargetKind.SIZE) is None
