"""
Tests for NoteGroup class.
"""

import logging

import pytest
from src.midi2ly.note_group import NoteGroup, PitchEntry


class TestNoteGroup:
    """Test NoteGroup creation and splitting."""
    
    def test_rest(self):
        """Test rest group."""
        group = NoteGroup.make_rest(480, 960)
        
        assert group.is_rest
        assert group.duration == 480
        assert group.end_position == 960
        assert str(group) == "480+480:r"
    
    def test_invalid_duration(self):
        """Test that empty groups raise error."""
        with pytest.raises(ValueError, match="Invalid duration"):
            NoteGroup.make_rest(480, 480)
    
    def test_entries_sorted(self):
        """Test pitch order is ascending."""
        group = NoteGroup(0, 480, [PitchEntry(67), PitchEntry(60, True)])
        group.add_pitch(64, False)
        
        assert group.pitches == [60, 64, 67]
        assert str(group) == "0+480:~60,64,67"
    
    def test_add_duplicate_pitch(self, caplog):
        """Test that a duplicate pitch is merged and reported."""
        group = NoteGroup.make_single_note(0, 480, 60, is_tied=True)
        
        with caplog.at_level(logging.WARNING):
            group.add_pitch(60, False)
        
        assert group.pitches == [60]
        assert not group.entry_for(60).is_tied
        assert "Overlapping notes" in caplog.text
    
    def test_split_at(self):
        """Test split returns tied later part."""
        group = NoteGroup(0, 960, [PitchEntry(60), PitchEntry(64)])
        
        later = group.split_at(480)
        
        assert (group.start_position, group.duration) == (0, 480)
        assert (later.start_position, later.duration) == (480, 480)
        assert later.pitches == [60, 64]
        assert all(entry.is_tied for entry in later.pitch_entries)
        assert not any(entry.is_tied for entry in group.pitch_entries)
    
    def test_split_rest(self):
        """Test splitting a rest gives two rests."""
        rest = NoteGroup.make_rest(0, 960)
        later = rest.split_at(240)
        
        assert rest.is_rest and later.is_rest
        assert later.duration == 720
    
    @pytest.mark.parametrize("position", [0, 960, 1200])
    def test_split_outside(self, position):
        """Test that split positions outside the group raise error."""
        group = NoteGroup.make_single_note(0, 960, 60)
        
        with pytest.raises(ValueError, match="Invalid split position"):
            group.split_at(position)
