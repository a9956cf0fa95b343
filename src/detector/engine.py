# src/detector/engine.py
import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from pydantic import BaseModel, Field

from detector.host import HostBridge
from detector.model import (
    Compliance, ContrastResult, DetectionSettings, Issue, IssueType, NodeData,
    ScanOutcome, SEVERITY_BY_TYPE, Undetermined, UndeterminedReason
)
from detector.services.background_resolver_service import BackgroundResolverService
from detector.services.color_service import evaluate_contrast, foreground_color
from detector.services.touch_target_service import TouchTargetKind, TouchTargetService
from detector.services.typography_service import TypographyService
from detector.tree.core import Capability, NodeBase, RGB, is_mixed
from detector.tree.models import DesignDocument
from detector.tree.nodes.text import TextNode

logger = logging.getLogger(__name__)

TYPOGRAPHY_DESCRIPTION = "Text size is too small for readability."
CONTRAST_DESCRIPTION = "Text contrast is below WCAG AA standard."

ProgressCallback = Callable[[int, int], None]


class NodeFindings(BaseModel):
    """Everything one node contributed to a scan."""

    issues: List[Issue] = Field(default_factory=list)
    undetermined: List[Undetermined] = Field(default_factory=list)
    failed: bool = False


def build_typography_issue(document: DesignDocument, node: TextNode) -> Issue:
    box = document.get_bounding_box(node)
    return Issue(
        type=IssueType.TYPOGRAPHY,
        severity=SEVERITY_BY_TYPE[IssueType.TYPOGRAPHY],
        description=TYPOGRAPHY_DESCRIPTION,
        node_data=NodeData(
            id=node.id,
            name=node.name,
            node_type=node.raw_type or node.type.value,
            characters=document.get_characters(node),
            font_size=document.get_font_size(node),
            line_height=node.line_height,
            height=box.height if box else None,
        ),
    )


def build_contrast_issue(document: DesignDocument, node: TextNode, result: ContrastResult, fg: RGB, bg: RGB) -> Issue:
    return Issue(
        type=IssueType.CONTRAST,
        severity=SEVERITY_BY_TYPE[IssueType.CONTRAST],
        description=CONTRAST_DESCRIPTION,
        node_data=NodeData(
            id=node.id,
            name=node.name,
            node_type=node.raw_type or node.type.value,
            characters=document.get_characters(node),
            font_size=document.get_font_size(node),
            contrast_score=result.compliance,
            contrast_ratio=result.ratio,
            foreground_color=fg,
            background_color=bg,
        ),
    )


class IssueDetectionEngine:
    """
    Runs every accessibility check over a set of nodes.

    A scan has two phases. First every boxed node in scope is classified as
    a touch target candidate or not; the candidates form the spacing pool.
    Then each node is analyzed on its own: text checks for text layers, size
    and spacing checks for candidates. Both phases fan out with
    asyncio.gather, which keeps results in input order, so the final issue
    list follows the pre-order of the scanned nodes regardless of how long
    any single host call takes.

    A failure on one node (font that will not load, unresolvable component,
    malformed data) is logged and only that node is skipped.
    """

    def __init__(self, document: DesignDocument, host: HostBridge, settings: Optional[DetectionSettings] = None):
        self.document = document
        self.host = host
        self.settings = settings or DetectionSettings()
        self.typography = TypographyService(
            document,
            min_font_size=self.settings.min_font_size,
            bold_weight=self.settings.bold_weight,
        )
        self.backgrounds = BackgroundResolverService(document)
        self.touch_targets = TouchTargetService(document, host, self.settings)

    # --- Scope ---

    def collect_scope(self, roots: Iterable[NodeBase]) -> List[NodeBase]:
        """Pre-order union of the given subtrees; nested roots are visited once."""
        seen = set()
        scope: List[NodeBase] = []
        for root in roots:
            for node in self.document.iter_subtree(root):
                if node.id in seen:
                    continue
                seen.add(node.id)
                scope.append(node)
        return scope

    # --- Entry points ---

    async def scan_document(self, progress: Optional[ProgressCallback] = None) -> ScanOutcome:
        root = self.document.root
        if root is None:
            logger.warning("Document has no root node, nothing to scan.")
            return ScanOutcome()
        return await self.scan(self.collect_scope([root]), progress=progress)

    async def scan_nodes(self, roots: Iterable[NodeBase], progress: Optional[ProgressCallback] = None) -> ScanOutcome:
        return await self.scan(self.collect_scope(roots), progress=progress)

    async def scan(self, nodes: List[NodeBase], progress: Optional[ProgressCallback] = None) -> ScanOutcome:
        """
        Analyzes the given nodes in order and returns the merged outcome.

        Args:
            nodes: Nodes in scope, already in pre-order.
            progress: Optional callback receiving (done, total) after each node.

        Returns:
            ScanOutcome: issues and undetermined entries in node order, plus
            the ids of nodes whose analysis failed.
        """
        boxed = [n for n in nodes if n.has(Capability.HAS_GEOMETRY)]
        flags = await asyncio.gather(*(self._classify(n) for n in boxed))
        candidate_ids = {n.id for n, is_candidate in zip(boxed, flags) if is_candidate}
        unresolved = {n.id for n, is_candidate in zip(boxed, flags) if is_candidate is None}
        pool = [n for n in boxed if n.id in candidate_ids]
        logger.info(f"Scanning {len(nodes)} nodes, {len(pool)} touch target candidates")

        total = len(nodes)
        done = 0

        async def analyze_tracked(node: NodeBase) -> NodeFindings:
            nonlocal done
            if node.id in unresolved:
                findings = NodeFindings(failed=True)
            else:
                findings = await self._analyze(node, node.id in candidate_ids, pool)
            done += 1
            if progress:
                progress(done, total)
            return findings

        results = await asyncio.gather(*(analyze_tracked(n) for n in nodes))

        outcome = ScanOutcome()
        for node, findings in zip(nodes, results):
            if findings.failed:
                outcome.skipped.append(node.id)
                continue
            outcome.issues.extend(findings.issues)
            outcome.undetermined.extend(findings.undetermined)

        logger.info(
            f"Scan finished: {len(outcome.issues)} issues, "
            f"{len(outcome.undetermined)} undetermined, {len(outcome.skipped)} skipped"
        )
        return outcome

    # --- Per-node work ---

    async def _classify(self, node: NodeBase) -> Optional[bool]:
        """None when the host could not answer for this node."""
        try:
            return await self.touch_targets.is_touch_target_candidate(node)
        except Exception as e:
            logger.error(f"Could not classify node {node.id} as touch target: {e}")
            return None

    async def _analyze(self, node: NodeBase, is_candidate: bool, pool: List[NodeBase]) -> NodeFindings:
        findings = NodeFindings()
        try:
            if isinstance(node, TextNode):
                await self._analyze_text(node, findings)

            if is_candidate:
                if self.touch_targets.is_too_small(node):
                    self._append(findings, self.touch_targets.build_issue(node, TouchTargetKind.SIZE))
                if self.touch_targets.is_too_close(node, pool):
                    self._append(findings, self.touch_targets.build_issue(node, TouchTargetKind.SPACING))
        except Exception as e:
            logger.error(f"Analysis failed for node {node.id} ({node.name!r}): {e}")
            return NodeFindings(failed=True)
        return findings

    @staticmethod
    def _append(findings: NodeFindings, issue: Optional[Issue]) -> None:
        if issue is not None:
            findings.issues.append(issue)

    async def _analyze_text(self, node: TextNode, findings: NodeFindings) -> None:
        if node.has_mixed_font:
            logger.info(f"Skipping text node {node.id}: mixed fonts cannot be loaded")
            return

        await self.host.load_font(node)

        font_size = self.document.get_font_size(node)
        if is_mixed(font_size):
            findings.undetermined.append(
                Undetermined(node_id=node.id, reason=UndeterminedReason.MIXED_FONT_SIZE)
            )
            return
        if font_size is None:
            logger.debug(f"Text node {node.id} has no font size, skipping text checks")
            return

        if not self.typography.is_legible_size(font_size):
            findings.issues.append(build_typography_issue(self.document, node))

        background = self.backgrounds.resolve(node)
        if background is None:
            findings.undetermined.append(
                Undetermined(node_id=node.id, reason=UndeterminedReason.NO_BACKGROUND)
            )
            return

        foreground = foreground_color(self.document.get_fills(node))
        characters = self.document.get_characters(node)
        bold = self.typography.is_bold(self.document.get_font_weight(node), node, 0, len(characters))
        result = evaluate_contrast(foreground, background, font_size, bold)

        if result.compliance == Compliance.FAIL:
            findings.issues.append(build_contrast_issue(self.document, node, result, foreground, background))
