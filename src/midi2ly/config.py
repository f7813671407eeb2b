"""Configuration for LilyPond export.

Handles loading YAML config and merging with command-line arguments.
Command-line arguments have higher priority than config file values.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, fields

from .quantizer import QuantizationConfig


def _default_reference_pitches() -> Dict[str, Optional[int]]:
    return {
        "bass": 36,
        "guitar": 60,
        "keyboard": 48,
        "keyboardBottom": 36,
        "keyboardTop": 60,
        "strings": 60,
        "vocals": 72,
    }


@dataclass
class ExportConfig:
    """LilyPond export configuration."""
    key: str = "c"
    adapted_notation: bool = True
    indentation: int = 4
    default_reference_pitch: int = 60
    # instrument name (first word of a take name) -> relative start pitch
    reference_pitches: Dict[str, Optional[int]] = field(default_factory=_default_reference_pitches)
    drum_instruments: List[str] = field(default_factory=lambda: ["drums", "percussion"])
    quantization: QuantizationConfig = field(default_factory=QuantizationConfig)
    
    def __post_init__(self):
        """Validate configuration values."""
        if self.indentation < 0:
            raise ValueError(f"Invalid indentation: {self.indentation}. Must be >= 0.")
        if not 0 <= self.default_reference_pitch <= 127:
            raise ValueError(
                f"Invalid default_reference_pitch: {self.default_reference_pitch}. Must be 0-127."
            )
    
    def reference_pitch_for(self, take_name: str) -> Optional[int]:
        """Return relative start pitch for <take_name>; None selects drum mode."""
        instrument_name = take_name.split(" ", 1)[0]
        
        if instrument_name in self.drum_instruments:
            return None
        
        return self.reference_pitches.get(instrument_name, self.default_reference_pitch)


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    
    with open(config_file, 'r', encoding='utf-8') as f:
        config_dict = yaml.safe_load(f)
    
    return config_dict or {}


def merge_configs(base_config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override config into base config."""
    merged = base_config.copy()
    
    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        elif value is not None:  # Only override if value is not None
            merged[key] = value
    
    return merged


def dict_to_config(config_dict: Dict[str, Any]) -> ExportConfig:
    """Convert dictionary to ExportConfig dataclass."""
    known_keys = {f.name for f in fields(ExportConfig)}
    unknown_keys = set(config_dict) - known_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown_keys)}")
    
    values = dict(config_dict)
    values['quantization'] = QuantizationConfig(**values.get('quantization', {}))
    
    if 'reference_pitches' in values:
        # configured pitches extend the built-in table
        values['reference_pitches'] = {**_default_reference_pitches(),
                                       **values['reference_pitches']}
    
    return ExportConfig(**values)


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None) -> ExportConfig:
    """Load configuration.
    
    Priority: overrides > YAML config > defaults
    """
    yaml_config = load_yaml_config(config_path) if config_path else {}
    return dict_to_config(merge_configs(yaml_config, overrides or {}))
