"""
Estimator configuration loader.

Reads YAML presets describing JacobianMethod parameters for typical
systems. Presets live in lyapspec/presets/<name>.yaml.

Usage:
    from lyapspec.config import get_preset

    config = get_preset('henon')
    method = config.build(series)
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from lyapspec.errors import InfeasibleConfigurationError

PRESET_DIR = Path(__file__).parent.parent / 'presets'


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class EstimatorConfig:
    """Parameters of one JacobianMethod run."""
    embedding_dim: int = 2
    iterations: Optional[int] = None
    eps_min: float = 0.0             # data units, 0 = adaptive
    eps_step: float = 1.2
    min_neighbors: int = 30
    inverse: bool = False
    neighbor_index: str = 'box'      # 'box' or 'kdtree'
    name: str = 'custom'
    description: str = ''

    def validate(self) -> 'EstimatorConfig':
        """Check parameter ranges that do not depend on the data."""
        if self.embedding_dim < 1:
            raise InfeasibleConfigurationError(
                f"embedding_dim must be >= 1, got {self.embedding_dim}"
            )
        if self.min_neighbors < 1:
            raise InfeasibleConfigurationError(
                f"min_neighbors must be >= 1, got {self.min_neighbors}"
            )
        if self.eps_step <= 1.0:
            raise InfeasibleConfigurationError(f"eps_step must be > 1, got {self.eps_step}")
        if self.eps_min < 0.0:
            raise InfeasibleConfigurationError(f"eps_min must be >= 0, got {self.eps_min}")
        if self.iterations is not None and self.iterations < 1:
            raise InfeasibleConfigurationError(
                f"iterations must be >= 1, got {self.iterations}"
            )
        if self.neighbor_index not in ('box', 'kdtree'):
            raise InfeasibleConfigurationError(
                f"neighbor_index must be 'box' or 'kdtree', got {self.neighbor_index!r}"
            )
        return self

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'EstimatorConfig':
        """Build from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known}).validate()

    def replace(self, **overrides) -> 'EstimatorConfig':
        """Copy with the non-None overrides applied."""
        values = asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EstimatorConfig(**values).validate()

    def estimator_kwargs(self) -> Dict[str, Any]:
        return {
            'embedding_dim': self.embedding_dim,
            'iterations': self.iterations,
            'eps_min': self.eps_min,
            'eps_step': self.eps_step,
            'min_neighbors': self.min_neighbors,
            'inverse': self.inverse,
        }

    def build(self, series: np.ndarray, **kwargs):
        """Create a JacobianMethod for `series` with these parameters."""
        from lyapspec.dynamics import JacobianMethod, make_neighbor_index

        return JacobianMethod(
            series,
            neighbor_index=make_neighbor_index(self.neighbor_index),
            **self.estimator_kwargs(),
            **kwargs,
        )

    def __repr__(self):
        return (f"EstimatorConfig({self.name}, m={self.embedding_dim}, "
                f"k={self.min_neighbors}, eps_min={self.eps_min})")


# =============================================================================
# LOADER FUNCTIONS
# =============================================================================

def load_preset(name: str, config_dir: Path = None) -> EstimatorConfig:
    """
    Load an estimator preset from YAML.

    Args:
        name: Preset name (e.g., 'default', 'henon')
        config_dir: Directory containing YAML files (default: lyapspec/presets/)

    Returns:
        EstimatorConfig object

    Raises:
        FileNotFoundError: If the preset file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    if config_dir is None:
        config_dir = PRESET_DIR

    yaml_path = Path(config_dir) / f"{name}.yaml"

    if not yaml_path.exists():
        raise FileNotFoundError(
            f"Preset not found: {yaml_path}\n"
            f"Available presets: {list_available_presets(config_dir)}"
        )

    with open(yaml_path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    estimator = raw.get('estimator', {})

    return EstimatorConfig.from_dict({
        **estimator,
        'name': raw.get('name', name),
        'description': raw.get('description', ''),
    })


def list_available_presets(config_dir: Path = None) -> List[str]:
    """List preset names (YAML files not starting with '_')."""
    if config_dir is None:
        config_dir = PRESET_DIR

    config_dir = Path(config_dir)
    if not config_dir.exists():
        return []

    return sorted(
        f.stem for f in config_dir.glob('*.yaml')
        if not f.name.startswith('_')
    )


# =============================================================================
# CACHING
# =============================================================================

_preset_cache: Dict[str, EstimatorConfig] = {}


def get_preset(name: str = 'default', use_cache: bool = True) -> EstimatorConfig:
    """
    Get an estimator preset (cached by default).

    Args:
        name: Preset name
        use_cache: Whether to use cached config

    Returns:
        EstimatorConfig object
    """
    if use_cache and name in _preset_cache:
        return _preset_cache[name]

    config = load_preset(name)

    if use_cache:
        _preset_cache[name] = config

    return config


def clear_preset_cache():
    """Clear the preset cache."""
    _preset_cache.clear()
