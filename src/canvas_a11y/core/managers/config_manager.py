# src/canvas_a11y/core/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from canvas_a11y.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Singleton holding the contents of the packaged settings.json.
    Detection thresholds, logging levels and report defaults are all read from here.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._config = {}
            cls._instance.reset()
        return cls._instance

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Looks up a dotted path such as 'detection.min_font_size'."""
        value: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(key)
        return default if value is None else value

    def get_section(self, name: str) -> Dict[str, Any]:
        """
        Returns a top-level section as a dict.
        A missing section, or one that is not a mapping, gives an empty dict.
        """
        section = self._config.get(name)
        if not isinstance(section, dict):
            if section is not None:
                logger.warning(f"Config section '{name}' is not a mapping, ignoring it.")
            return {}
        return dict(section)

    def reset(self):
        """(Re)loads settings.json; an unreadable file leaves an empty config."""
        config_path = PathUtils.get_settings_file()
        if not config_path.exists():
            logger.warning(f"settings.json not found at {config_path}. Using empty config.")
            self._config = {}
            return
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load settings.json: {e}", exc_info=True)
            self._config = {}
            return
        self._config = loaded if isinstance(loaded, dict) else {}
        logger.debug(f"Configuration loaded from {config_path}.")


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
