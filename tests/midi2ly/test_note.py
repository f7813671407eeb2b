"""
Tests for NoteEvent class.
"""

import pytest
from src.midi2ly.note import NoteEvent, as_note_event


class TestNoteEvent:
    """Test NoteEvent creation and validation."""
    
    def test_create_valid_event(self):
        """Test creating a valid note event."""
        event = NoteEvent(pitch=60, start_tick=0, end_tick=480)
        
        assert event.pitch == 60
        assert event.duration == 480
        assert event.pitch_name == "C4"
    
    def test_zero_length_allowed(self):
        """Test that start == end is accepted (dropped later)."""
        event = NoteEvent(pitch=60, start_tick=100, end_tick=100)
        assert event.duration == 0
    
    def test_invalid_pitch(self):
        """Test that negative pitch raises error."""
        with pytest.raises(ValueError, match="Invalid pitch"):
            NoteEvent(pitch=-1, start_tick=0, end_tick=10)
    
    def test_invalid_start(self):
        """Test that negative start raises error."""
        with pytest.raises(ValueError, match="Invalid start_tick"):
            NoteEvent(pitch=60, start_tick=-5, end_tick=10)
    
    def test_end_before_start(self):
        """Test that end before start raises error."""
        with pytest.raises(ValueError, match="Invalid end_tick"):
            NoteEvent(pitch=60, start_tick=100, end_tick=50)
    
    def test_pitch_above_midi_range(self):
        """Test that high pitches are kept but flagged."""
        assert NoteEvent(60, 0, 10).is_midi_pitch
        assert NoteEvent(127, 0, 10).is_midi_pitch
        assert not NoteEvent(128, 0, 10).is_midi_pitch
    
    def test_dict_conversion(self):
        """Test conversion from dictionaries."""
        event = as_note_event({'pitch': 64, 'start_tick': 10, 'end_tick': 20})
        
        assert event == NoteEvent(64, 10, 20)
        assert as_note_event(event) is event
