# src/detector/host.py
from typing import Optional, Protocol

from detector.tree.core import NodeBase


class HostError(Exception):
    """Base class for failures reported by the host application."""


class FontLoadError(HostError):
    """The host could not load the font a text node uses."""


class ComponentResolutionError(HostError):
    """The host could not resolve an instance's master component."""


class HostBridge(Protocol):
    """
    The parts of the host application the detection core talks to.

    The two coroutines are the only suspension points of a scan. The commands
    are fire-and-forget requests; the host owns every mutation.
    """

    async def resolve_master_component(self, node: NodeBase) -> Optional[NodeBase]:
        ...

    async def load_font(self, node: NodeBase) -> None:
        ...

    def request_font_size_change(self, node_id: str, font_size: float) -> None:
        ...

    def request_select(self, node_id: str) -> None:
        ...

    def request_reveal_in_viewport(self, node_id: str) -> None:
        ...
