# src/canvas_a11y/host/json_host.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from detector.host import ComponentResolutionError, FontLoadError
from detector.tree.builder import TreeBuilder
from detector.tree.core import NodeBase
from detector.tree.models import DesignDocument
from detector.tree.nodes.instance import InstanceNode
from detector.tree.nodes.text import FontName, TextNode

logger = logging.getLogger(__name__)


class DocumentLoadError(Exception):
    """The document file could not be read or is not a design export."""


class JsonDocumentHost:
    """
    Host adapter over a design export stored as JSON.

    It plays the part of the design application: it resolves master
    components, loads fonts and applies the commands the detection core
    sends. The raw export stays owned by the host; the typed DesignDocument
    built from it is what the core reads.
    """

    def __init__(self, payload: Dict[str, Any], source: Optional[Path] = None):
        self.raw = payload
        self.source = source
        self.document: DesignDocument = TreeBuilder().build(payload)
        self.commands: List[Tuple[str, Tuple[Any, ...]]] = []
        self._missing_fonts = {self._font_key(f) for f in (payload.get("missingFonts") or [])}
        self._raw_index = self._index_raw_nodes(payload.get("document", payload))

        for error in self.document.load_errors:
            logger.warning(f"Load issue in {source or 'document'}: {error}")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "JsonDocumentHost":
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except FileNotFoundError:
            raise DocumentLoadError(f"Document not found: {path}")
        except (OSError, json.JSONDecodeError) as e:
            raise DocumentLoadError(f"Could not read {path}: {e}")

        if not isinstance(payload, dict):
            raise DocumentLoadError(f"{path} does not contain a document object")

        host = cls(payload, source=path)
        if host.document.root is None:
            raise DocumentLoadError(f"{path} has no usable root node")
        return host

    # --- Helpers ---

    @staticmethod
    def _font_key(font: Any) -> str:
        if isinstance(font, dict):
            return f"{font.get('family', '')} {font.get('style', 'Regular')}".strip().lower()
        return str(font).strip().lower()

    @staticmethod
    def _index_raw_nodes(root: Any) -> Dict[str, Dict[str, Any]]:
        index: Dict[str, Dict[str, Any]] = {}
        stack = [root]
        while stack:
            raw = stack.pop()
            if not isinstance(raw, dict) or "id" not in raw:
                continue
            index.setdefault(str(raw["id"]), raw)
            children = raw.get("children")
            if isinstance(children, list):
                stack.extend(children)
        return index

    # --- Async host calls ---

    async def resolve_master_component(self, node: NodeBase) -> Optional[NodeBase]:
        if not isinstance(node, InstanceNode) or not node.main_component_id:
            return None

        master = self.document.get_node(node.main_component_id)
        if master is None:
            raise ComponentResolutionError(
                f"Main component {node.main_component_id} of instance {node.id} is not in the document"
            )
        return master

    async def load_font(self, node: NodeBase) -> None:
        if not isinstance(node, TextNode) or not isinstance(node.font_name, FontName):
            return

        family_key = self._font_key(node.font_name.family)
        full_key = self._font_key({"family": node.font_name.family, "style": node.font_name.style})
        if family_key in self._missing_fonts or full_key in self._missing_fonts:
            raise FontLoadError(f"Font '{node.font_name.family} {node.font_name.style}' is not available")

    # --- Commands ---

    def request_font_size_change(self, node_id: str, font_size: float) -> None:
        self.commands.append(("font-size", (node_id, font_size)))
        raw = self._raw_index.get(node_id)
        if raw is None:
            logger.warning(f"Font size change for unknown node {node_id} dropped.")
            return
        logger.info(f"Setting font size of {node_id} to {font_size:g}px")
        raw["fontSize"] = font_size

    def request_select(self, node_id: str) -> None:
        self.commands.append(("select", (node_id,)))
        self.raw["selection"] = [node_id]
        logger.info(f"Selected {node_id}")

    def request_reveal_in_viewport(self, node_id: str) -> None:
        self.commands.append(("reveal", (node_id,)))
        logger.info(f"Revealed {node_id} in viewport")

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Writes the raw document, including applied commands, back to disk."""
        target = Path(path) if path else self.source
        if target is None:
            raise ValueError("No target path to save the document to")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.raw, f, indent=2, ensure_ascii=False)
        logger.info(f"Document saved to {target}")
        return target
