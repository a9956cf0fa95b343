# src/detector/controllers/scan_controller.py
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from detector.engine import IssueDetectionEngine, ProgressCallback
from detector.host import HostBridge
from detector.messages import (
    FontSizeEditRequested, Navigate, QuickCheckCancelled, QuickCheckStarted, ScanMode,
    ScanRequested, ScanResponse, SelectionChanged, SessionEvent, parse_event
)
from detector.model import DetectionSettings, ScanOutcome
from detector.tree.core import NodeBase
from detector.tree.models import DesignDocument
from detector.tree.nodes.text import TextNode

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    AWAITING_SELECTION_CHANGE = "awaiting-selection-change"
    CANCELLED = "cancelled"


class CancellationToken:
    """Set once; scans started under a cancelled token have their result discarded."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


class ScanSession:
    """
    Event-driven controller between the UI channel and the detection engine.

    All host and UI events go through `dispatch`, which branches on the
    current state:

        Idle --scan--> Scanning --> Idle
        Idle --quickcheck-started--> AwaitingSelectionChange
        AwaitingSelectionChange --selection-changed--> Scanning --> AwaitingSelectionChange
        AwaitingSelectionChange --quickcheck-cancelled--> Cancelled

    The quick-check flag and its cancellation token belong to the session
    instance, so independent sessions never see each other's state.
    """

    def __init__(
            self,
            document: DesignDocument,
            host: HostBridge,
            settings: Optional[DetectionSettings] = None,
            progress: Optional[ProgressCallback] = None
    ):
        self.document = document
        self.host = host
        self.engine = IssueDetectionEngine(document, host, settings)
        self.progress = progress
        self.state = SessionState.IDLE
        self.quick_check = False
        self.token = CancellationToken()

    async def dispatch(self, event: Union[SessionEvent, Dict[str, Any]]) -> Optional[ScanResponse]:
        """
        Handles one event.

        Args:
            event: A typed event or its raw mapping form.

        Returns:
            ScanResponse for scan and selection events, None for commands and
            for events the current state ignores.
        """
        if isinstance(event, dict):
            event = parse_event(event)

        logger.debug(f"Session state {self.state.value} received '{event.event}'")

        if isinstance(event, ScanRequested):
            return await self._on_scan(event)
        if isinstance(event, QuickCheckStarted):
            return self._on_quick_check_started()
        if isinstance(event, SelectionChanged):
            return await self._on_selection_changed(event)
        if isinstance(event, QuickCheckCancelled):
            return self._on_quick_check_cancelled()
        if isinstance(event, FontSizeEditRequested):
            return self._on_font_size_edit(event)
        if isinstance(event, Navigate):
            return self._on_navigate(event)

        logger.warning(f"Unhandled session event: {event!r}")
        return None

    # --- Scans ---

    @property
    def _resting_state(self) -> SessionState:
        return SessionState.AWAITING_SELECTION_CHANGE if self.quick_check else SessionState.IDLE

    async def _run(self, roots: List[NodeBase], progress: Optional[ProgressCallback] = None) -> ScanOutcome:
        self.state = SessionState.SCANNING
        try:
            outcome = await self.engine.scan_nodes(roots, progress=progress)
        finally:
            # A cancel during the scan already moved the session on.
            if self.state == SessionState.SCANNING:
                self.state = self._resting_state
        return outcome

    async def _on_scan(self, event: ScanRequested) -> ScanResponse:
        if event.mode == ScanMode.SELECTION:
            roots = self.document.get_selection()
            if not roots:
                logger.info("Selection scan requested with an empty selection.")
                return ScanResponse()
        else:
            roots = [self.document.root] if self.document.root else []

        if self.state == SessionState.CANCELLED:
            self.state = SessionState.IDLE

        outcome = await self._run(roots, progress=self.progress)
        return ScanResponse(issues=outcome.issues, undetermined=outcome.undetermined)

    def _on_quick_check_started(self) -> None:
        self.quick_check = True
        self.token = CancellationToken()
        self.state = SessionState.AWAITING_SELECTION_CHANGE
        logger.info("Quick check started.")
        return None

    async def _on_selection_changed(self, event: SelectionChanged) -> Optional[ScanResponse]:
        if not self.quick_check:
            logger.debug("Selection changed outside quick check, ignored.")
            return None

        self.document.selection = [node_id for node_id in event.nodes if node_id in self.document.nodes]
        roots = self.document.get_selection()
        if not roots:
            return ScanResponse()

        token = self.token
        outcome = await self._run(roots)
        if token.is_cancelled:
            logger.info("Quick check was cancelled during the scan, result discarded.")
            return None
        return ScanResponse(issues=outcome.issues, undetermined=outcome.undetermined)

    def _on_quick_check_cancelled(self) -> None:
        self.token.cancel()
        self.quick_check = False
        self.state = SessionState.CANCELLED
        logger.info("Quick check cancelled.")
        return None

    # --- Commands ---

    def _on_font_size_edit(self, event: FontSizeEditRequested) -> None:
        node = self.document.get_node(event.node_id)
        if not isinstance(node, TextNode):
            logger.warning(f"Font size edit ignored: {event.node_id} is not a text node.")
            return None

        # The host applies the change; the document here stays as scanned.
        self.host.request_font_size_change(event.node_id, event.font_size)
        return None

    def _on_navigate(self, event: Navigate) -> None:
        if self.document.get_node(event.node_id) is None:
            logger.warning(f"Navigate ignored: unknown node {event.node_id}.")
            return None

        self.host.request_select(event.node_id)
        self.host.request_reveal_in_viewport(event.node_id)
        return None
