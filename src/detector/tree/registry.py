# src/detector/tree/registry.py
import importlib
import pkgutil
import logging
from typing import Dict, List, Optional

from .core import NodeDefinition, NodeType

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Central registry for design node kinds.

    Dynamically discovers NodeDefinition modules from the 'detector.tree.nodes'
    package and maps every host type tag to its definition.
    """

    _definitions: Dict[NodeType, NodeDefinition] = {}
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """
        Discovers and registers all node definitions found in the 'detector.tree.nodes' package.

        A module takes part when it exposes a `DEFINITION` attribute that is an
        instance of `NodeDefinition`. Later modules never override a tag that an
        earlier module already claimed.
        """
        if cls._loaded:
            return

        try:
            import detector.tree.nodes as nodes_pkg

            for _, name, _ in sorted(pkgutil.iter_modules(nodes_pkg.__path__), key=lambda m: m.name):
                full_name = f"detector.tree.nodes.{name}"
                try:
                    module = importlib.import_module(full_name)
                    defn = getattr(module, "DEFINITION", None)
                    if not isinstance(defn, NodeDefinition):
                        continue

                    for tag in defn.type_tags:
                        if tag in cls._definitions:
                            logger.warning(f"Node type {tag.value} already registered, ignoring {full_name}")
                            continue
                        cls._definitions[tag] = defn

                    logger.debug(f"Node kind loaded: {name} -> {[t.value for t in defn.type_tags]}")
                except Exception as e:
                    logger.error(f"Error loading node module {name}: {e}")

            cls._loaded = True
        except ImportError as e:
            logger.error(f"Could not find nodes package: {e}")

    @classmethod
    def get_definition(cls, node_type: NodeType) -> Optional[NodeDefinition]:
        """Retrieves the definition registered for a host type tag."""
        return cls._definitions.get(node_type)

    @classmethod
    def get_registered_types(cls) -> List[NodeType]:
        """Returns every type tag that has a dedicated node kind."""
        return sorted(cls._definitions.keys(), key=lambda t: t.value)
