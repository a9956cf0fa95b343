# tests/conftest.py
import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from canvas_a11y.host.json_host import JsonDocumentHost
from detector.tree.builder import TreeBuilder
from detector.tree.models import DesignDocument


# --- Bouwstenen voor nep-documenten ---

def solid(r: int, g: int, b: int, visible: bool = True) -> Dict[str, Any]:
    """Een SOLID fill met kanalen in 0..255, omgezet naar de 0..1 vorm van de host."""
    return {"type": "SOLID", "visible": visible, "color": {"r": r / 255, "g": g / 255, "b": b / 255}}


def node(node_id: str, node_type: str = "FRAME", name: Optional[str] = None, box=None,
         fills: Optional[List[Dict[str, Any]]] = None, children=None, **extra) -> Dict[str, Any]:
    raw: Dict[str, Any] = {"id": node_id, "type": node_type, "name": name or node_id}
    if box is not None:
        raw.update(dict(zip(("x", "y", "width", "height"), box)))
    if fills is not None:
        raw["fills"] = fills
    if children is not None:
        raw["children"] = children
    raw.update(extra)
    return raw


def text(node_id: str, characters: str = "Hello", font_size: Any = 16, font_weight: Any = 400,
         box=(0, 0, 100, 20), fills=None, name: Optional[str] = None, font_name: Any = None,
         **extra) -> Dict[str, Any]:
    return node(
        node_id, "TEXT", name=name, box=box,
        fills=fills if fills is not None else [solid(0, 0, 0)],
        characters=characters, fontSize=font_size, fontWeight=font_weight,
        fontName=font_name if font_name is not None else {"family": "Inter", "style": "Regular"},
        **extra
    )


def build(root: Dict[str, Any], selection: Optional[List[str]] = None, **payload) -> DesignDocument:
    return TreeBuilder().build({"name": "Test", "document": root, "selection": selection or [], **payload})


def run(coro):
    """Draait een coroutine in een eigen event loop (geen plugin nodig)."""
    return asyncio.run(coro)


# --- Fixtures ---

@pytest.fixture
def command_host():
    """Een host waarvan de commando's met MagicMock worden vastgelegd."""
    def _make(root: Dict[str, Any], **payload) -> JsonDocumentHost:
        host = JsonDocumentHost({"name": "Test", "document": root, **payload})
        host.request_font_size_change = MagicMock()
        host.request_select = MagicMock()
        host.request_reveal_in_viewport = MagicMock()
        return host
    return _make
