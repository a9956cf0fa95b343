# src/canvas_a11y/core/utils/path_utils.py
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving important package and user paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_shell_package_root() -> Path:
        """Returns the directory of the canvas_a11y package (holds settings.json)."""
        return Path(__file__).resolve().parent.parent.parent

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_shell_package_root() / "settings.json"

    # --- User specific paths ---

    @staticmethod
    def get_user_documents_dir() -> Path:
        """
        Returns the absolute path to the current user's Documents directory.
        """
        return Path.home() / "Documents"

    # --- Helper methods ---

    @staticmethod
    def resolve_output_path(output: Optional[str], default_name: str) -> Path:
        """
        Resolves where a report is written.
        Absolute paths are kept; relative paths and the default land in the Documents folder.
        """
        target = Path(output) if output else Path(default_name)
        if not target.is_absolute():
            target = PathUtils.get_user_documents_dir() / target
        target.parent.mkdir(parents=True, exist_ok=True)
        return target
