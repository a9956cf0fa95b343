# tests/core/test_json_host.py
import json

import pytest

from canvas_a11y.host.json_host import DocumentLoadError, JsonDocumentHost
from conftest import node, run, text
from detector.host import ComponentResolutionError, FontLoadError


@pytest.fixture
def doc_file(tmp_path):
    """Schrijft een klein document naar schijf en geeft het pad terug."""
    payload = {
        "name": "Landing page",
        "missingFonts": ["Ghost Sans", {"family": "Inter", "style": "Black"}],
        "document": node("frame", box=(0, 0, 400, 400), children=[
            node("cmp", "COMPONENT", name="Button"),
            node("inst", "INSTANCE", name="Instance", mainComponentId="cmp"),
            node("orphan", "INSTANCE", name="Orphan", mainComponentId="deleted"),
            text("t1", font_size=9),
            text("ghost", font_name={"family": "Ghost Sans", "style": "Regular"}),
            text("black", font_name={"family": "Inter", "style": "Black"}),
        ]),
    }
    path = tmp_path / "doc.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_from_file_builds_document(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    assert host.document.name == "Landing page"
    assert host.document.root.id == "frame"
    assert len(host.document.nodes) == 7


def test_from_file_missing(tmp_path):
    with pytest.raises(DocumentLoadError):
        JsonDocumentHost.from_file(tmp_path / "nope.json")


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", '{"document": {"type": "FRAME"}}'])
def test_from_file_invalid(tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(DocumentLoadError):
        JsonDocumentHost.from_file(path)


def test_resolve_master_component(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    doc = host.document

    assert run(host.resolve_master_component(doc.get_node("inst"))).id == "cmp"
    assert run(host.resolve_master_component(doc.get_node("t1"))) is None
    with pytest.raises(ComponentResolutionError):
        run(host.resolve_master_component(doc.get_node("orphan")))


def test_load_font_rejects_missing_fonts(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    doc = host.document

    run(host.load_font(doc.get_node("t1")))
    with pytest.raises(FontLoadError):
        run(host.load_font(doc.get_node("ghost")))
    with pytest.raises(FontLoadError):
        run(host.load_font(doc.get_node("black")))


def test_font_size_change_is_applied_to_raw_document(doc_file, tmp_path):
    host = JsonDocumentHost.from_file(doc_file)
    host.request_font_size_change("t1", 12)

    # Het getypte document blijft zoals het gescand is.
    assert host.document.get_node("t1").font_size == 9
    assert host.commands == [("font-size", ("t1", 12))]

    out = host.save(tmp_path / "fixed.json")
    reloaded = JsonDocumentHost.from_file(out)
    assert reloaded.document.get_node("t1").font_size == 12


def test_font_size_change_unknown_node(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    host.request_font_size_change("ghost-node", 12)
    assert host.commands == [("font-size", ("ghost-node", 12))]


def test_navigation_commands_are_recorded(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    host.request_select("t1")
    host.request_reveal_in_viewport("t1")
    assert [name for name, _ in host.commands] == ["select", "reveal"]
    assert host.raw["selection"] == ["t1"]


def test_save_without_path_overwrites_source(doc_file):
    host = JsonDocumentHost.from_file(doc_file)
    host.request_font_size_change("t1", 14)
    assert host.save() == doc_file
    assert json.loads(doc_file.read_text(encoding="utf-8"))["document"]["children"][3]["fontSize"] == 14
