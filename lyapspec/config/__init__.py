"""lyapspec configuration module."""

from lyapspec.config.estimator import (
    EstimatorConfig,
    PRESET_DIR,
    load_preset,
    list_available_presets,
    get_preset,
    clear_preset_cache,
)

__all__ = [
    'EstimatorConfig',
    'PRESET_DIR',
    'load_preset',
    'list_available_presets',
    'get_preset',
    'clear_preset_cache',
]
