"""
Configuration settings for the BVOLS estimation framework.
"""

from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict, fields
import json
import logging

# Default configuration
DEFAULT_CONFIG = {
    # Estimation settings
    "robust": True,
    "drop_incomplete": True,
    "drop_nonpositive": False,
    "require_balanced_roles": True,
    "rank_tolerance": None,

    # Dataset layout
    "origin_var": "iso_o",
    "destination_var": "iso_d",
}


@dataclass
class EstimationConfig:
    """
    Configuration for a Bonus Vetus OLS estimation.

    Attributes:
        robust: Report HC1 heteroskedasticity-robust standard errors (default: True)
        drop_incomplete: Drop rows with missing values in any used column
            instead of raising (default: True)
        drop_nonpositive: Drop rows with non-positive flow, distance or income
            instead of raising (default: False)
        require_balanced_roles: Reject datasets where a country appears only as
            origin or only as destination (default: True)
        rank_tolerance: Tolerance passed to the design-matrix rank check
            (default: numpy's own)
        origin_var: Column holding the origin country code (default: 'iso_o')
        destination_var: Column holding the destination country code (default: 'iso_d')
    """

    robust: bool = True
    drop_incomplete: bool = True
    drop_nonpositive: bool = False
    require_balanced_roles: bool = True
    rank_tolerance: Optional[float] = None
    origin_var: str = "iso_o"
    destination_var: str = "iso_d"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'EstimationConfig':
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config_dict.items() if k in known})

    def validate(self) -> List[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for flag in ["robust", "drop_incomplete", "drop_nonpositive", "require_balanced_roles"]:
            value = getattr(self, flag)
            if not isinstance(value, bool):
                errors.append(f"{flag} must be True or False, got {value!r}")

        if self.rank_tolerance is not None:
            if isinstance(self.rank_tolerance, bool) or not isinstance(self.rank_tolerance, (int, float)):
                errors.append(f"rank_tolerance must be a number, got {self.rank_tolerance!r}")
            elif self.rank_tolerance <= 0:
                errors.append(f"rank_tolerance must be positive, got {self.rank_tolerance}")

        for name in ["origin_var", "destination_var"]:
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                errors.append(f"{name} must be a non-empty string, got {value!r}")

        if self.origin_var == self.destination_var:
            errors.append(f"origin_var and destination_var must differ, both are {self.origin_var!r}")

        return errors


class BVOLSConfig:
    """Configuration manager for BVOLS estimation."""

    def __init__(self, config_dict: Dict[str, Any] = None):
        """Initialize configuration."""
        self.config = DEFAULT_CONFIG.copy()
        if config_dict:
            self.config.update(config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self.config[key] = value

    def update(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration with dictionary."""
        self.config.update(config_dict)

    def estimation_config(self) -> EstimationConfig:
        """Build the estimation settings from the current values."""
        return EstimationConfig.from_dict(self.config)


# Global configuration instance
config = BVOLSConfig()


def load_config_from_file(config_path: str) -> BVOLSConfig:
    """Load configuration from file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config_dict = json.load(f)

    logging.getLogger(__name__).info(f"Loaded configuration from {config_path}")
    return BVOLSConfig(config_dict)


def save_config_to_file(config_obj: BVOLSConfig, config_path: str) -> None:
    """Save configuration to file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config_obj.config, f, indent=2)
