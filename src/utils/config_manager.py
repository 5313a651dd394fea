"""
Configuration Manager

This module handles persistent storage and retrieval of display-state settings:
which viewport synchronizations are active, the default colour map, the
per-modality window/level presets and the playback frame rate.
Settings are stored in a JSON file in the user's application data directory.

Inputs:
    - Display preferences (binders, colour map, presets, playback rate)

Outputs:
    - Loaded configuration values
    - Saved configuration file

Requirements:
    - json module (standard library)
    - pathlib module (standard library)
    - os module (standard library)
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Names understood by gui.binders.binders_from_names
BINDER_NAMES = ["WindowLevel", "Position", "Zoom", "Offset", "Opacity"]

DEFAULT_WINDOW_PRESETS: Dict[str, Dict[str, Dict[str, float]]] = {
    "CT": {
        "mediastinum": {"center": 40, "width": 400},
        "lung": {"center": -500, "width": 1500},
        "bone": {"center": 500, "width": 2000},
        "brain": {"center": 40, "width": 80},
        "head": {"center": 90, "width": 350},
    },
}


class ConfigManager:
    """
    Manages display-state configuration.

    Handles loading and saving of settings including:
    - Active binder names (viewport synchronization)
    - Default colour map name
    - Default window/level presets per modality
    - Playback frame rate
    """

    def __init__(self, config_filename: str = "display_state_config.json",
                 config_dir: Optional[Path] = None):
        """
        Initialize the configuration manager.

        Args:
            config_filename: Name of the configuration file to use
            config_dir: Optional directory overriding the user config directory
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
        elif os.name == 'nt':  # Windows
            app_data = os.getenv('APPDATA', os.path.expanduser('~'))
            self.config_dir = Path(app_data) / "ViewerDisplayState"
        else:  # Mac/Linux
            self.config_dir = Path.home() / ".config" / "ViewerDisplayState"

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path = self.config_dir / config_filename

        self.default_config = {
            "binders": ["WindowLevel", "Position"],
            "colour_map": "plain",
            "default_window_presets": copy.deepcopy(DEFAULT_WINDOW_PRESETS),
            "playback_fps": 10,
        }

        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from file, or return defaults if file doesn't exist.

        Returns:
            Dictionary containing configuration values
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    loaded_config = json.load(f)
                    # Merge with defaults to ensure all keys exist
                    config = copy.deepcopy(self.default_config)
                    config.update(loaded_config)
                    return config
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Could not load config file %s: %s", self.config_path, e)
                return copy.deepcopy(self.default_config)
        return copy.deepcopy(self.default_config)

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if save was successful, False otherwise
        """
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=4, ensure_ascii=False)
            return True
        except IOError as e:
            logger.error("Error saving config file %s: %s", self.config_path, e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.config[key] = value

    def get_binder_names(self) -> List[str]:
        """
        Get the names of the active binders.

        Returns:
            List of binder names, in wiring order
        """
        return list(self.config.get("binders", []))

    def set_binder_names(self, names: List[str]) -> None:
        """
        Set the names of the active binders.

        Args:
            names: Binder names, each one of BINDER_NAMES

        Raises:
            ValueError: If a name is not a known binder
        """
        for name in names:
            if name not in BINDER_NAMES:
                raise ValueError(f"Unknown binder name: '{name}'")
        self.config["binders"] = list(names)
        self.save_config()

    def get_colour_map_name(self) -> str:
        return self.config.get("colour_map", "plain")

    def set_colour_map_name(self, name: str) -> None:
        self.config["colour_map"] = name
        self.save_config()

    def get_default_window_presets(self, modality: Optional[str]) -> Dict[str, Dict[str, float]]:
        """
        Get the configured window/level presets for a modality.

        Args:
            modality: DICOM modality (e.g. "CT"), may be None

        Returns:
            Dict of preset name -> {"center", "width"}, empty if none configured
        """
        if not modality:
            return {}
        presets = self.config.get("default_window_presets", {})
        return copy.deepcopy(presets.get(str(modality).upper(), {}))

    def set_default_window_preset(self, modality: str, name: str,
                                  center: float, width: float) -> None:
        """
        Add or replace one default preset for a modality.

        Raises:
            ValueError: If width is below 1
        """
        if width < 1:
            raise ValueError(f"Window width must be >= 1, got {width}")
        presets = self.config.setdefault("default_window_presets", {})
        presets.setdefault(modality.upper(), {})[name] = {"center": center, "width": width}
        self.save_config()

    def get_playback_fps(self) -> float:
        return self.config.get("playback_fps", 10)

    def set_playback_fps(self, fps: float) -> None:
        self.config["playback_fps"] = fps
        self.save_config()
