"""
Tests for export configuration.
"""

import pytest
import yaml
from src.midi2ly.config import (
    ExportConfig,
    dict_to_config,
    load_config,
    load_yaml_config,
    merge_configs,
)


class TestExportConfig:
    """Test configuration defaults and validation."""
    
    def test_defaults(self):
        """Test default values."""
        config = ExportConfig()
        
        assert config.key == "c"
        assert config.adapted_notation
        assert config.indentation == 4
        assert config.quantization.log2_minimum_note_length == 5
    
    def test_invalid_values(self):
        """Test that invalid values raise error."""
        with pytest.raises(ValueError, match="indentation"):
            ExportConfig(indentation=-1)
        with pytest.raises(ValueError, match="default_reference_pitch"):
            ExportConfig(default_reference_pitch=200)
    
    @pytest.mark.parametrize("take_name,pitch", [
        ("bass", 36),
        ("guitar solo", 60),
        ("keyboard left", 48),
        ("keyboardBottom", 36),
        ("vocals", 72),
        ("drums", None),
        ("percussion 2", None),
        ("theremin", 60),
    ])
    def test_reference_pitch_for(self, take_name, pitch):
        """Test instrument lookup by first word of the take name."""
        assert ExportConfig().reference_pitch_for(take_name) == pitch


class TestConfigLoading:
    """Test YAML loading and merging."""
    
    def test_merge_configs(self):
        """Test recursive merge ignoring None overrides."""
        base = {'key': 'c', 'quantization': {'log2_minimum_note_length': 5}}
        overrides = {'key': None, 'quantization': {'log2_minimum_note_length': 4}}
        
        merged = merge_configs(base, overrides)
        
        assert merged == {'key': 'c', 'quantization': {'log2_minimum_note_length': 4}}
    
    def test_load_yaml(self, tmp_path):
        """Test loading a YAML file."""
        config_path = tmp_path / "export.yaml"
        config_path.write_text(yaml.safe_dump({'key': 'bf', 'indentation': 2}))
        
        assert load_yaml_config(str(config_path)) == {'key': 'bf', 'indentation': 2}
    
    def test_load_empty_yaml(self, tmp_path):
        """Test that an empty file gives defaults."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")
        
        assert load_config(str(config_path)) == ExportConfig()
    
    def test_missing_file(self, tmp_path):
        """Test that a missing file raises error."""
        with pytest.raises(FileNotFoundError):
            load_yaml_config(str(tmp_path / "missing.yaml"))
    
    def test_overrides_win(self, tmp_path):
        """Test priority of overrides over file values."""
        config_path = tmp_path / "export.yaml"
        config_path.write_text("key: bf\nadapted_notation: true\n"
                               "quantization:\n  log2_minimum_note_length: 4\n")
        
        config = load_config(str(config_path), {'key': 'g', 'adapted_notation': False})
        
        assert config.key == "g"
        assert not config.adapted_notation
        assert config.quantization.log2_minimum_note_length == 4
    
    def test_reference_pitches_extend_defaults(self):
        """Test that configured instruments are added to the table."""
        config = dict_to_config({'reference_pitches': {'flute': 72, 'bass': 24}})
        
        assert config.reference_pitch_for("flute") == 72
        assert config.reference_pitch_for("bass") == 24
        assert config.reference_pitch_for("vocals") == 72
    
    def test_unknown_key(self):
        """Test that unknown keys raise error."""
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            dict_to_config({'tempo': 120})
