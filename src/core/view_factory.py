"""
View factory.

Creates a ready-to-use View for a series: builds the Image from the
datasets, installs the dataset window presets (followed by the configured
modality presets and minmax) and picks the default colour map.

Inputs:
    - pydicom Datasets of a series
    - Optional ConfigManager

Outputs:
    - Initialised View

Requirements:
    - core.dicom_image, core.view, core.colour_maps, core.window_level
    - utils.config_manager
"""

from typing import Dict, Optional, Sequence

from pydicom.dataset import Dataset

from core.colour_maps import get_colour_map
from core.dicom_image import get_window_presets_from_datasets, image_from_datasets
from core.view import View
from core.window_level import MINMAX_PRESET_NAME, WindowPreset
from utils.config_manager import ConfigManager


def create_view(datasets: Sequence[Dataset], config_manager: Optional[ConfigManager] = None) -> View:
    """
    Create a view for the datasets of a series.

    Args:
        datasets: Single-frame datasets, any order
        config_manager: Optional configuration for default presets/colour map

    Returns:
        View positioned at the first slice
    """
    image = image_from_datasets(datasets)
    view = View(image)

    presets: Dict[str, WindowPreset] = get_window_presets_from_datasets(datasets)
    if config_manager is not None:
        modality_presets = config_manager.get_default_window_presets(image.get_meta().get("Modality"))
        for name, values in modality_presets.items():
            if name not in presets:
                presets[name] = WindowPreset.from_center_width(name, values["center"], values["width"])
    presets[MINMAX_PRESET_NAME] = WindowPreset(MINMAX_PRESET_NAME)
    view.set_window_presets(presets)

    if image.get_photometric_interpretation().upper() == "MONOCHROME1":
        view.set_default_colour_map(get_colour_map("inv_plain"))
    elif config_manager is not None:
        view.set_default_colour_map(get_colour_map(config_manager.get_colour_map_name()))

    view.init()
    return view
