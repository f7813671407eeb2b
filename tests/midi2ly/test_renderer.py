"""
Tests for LilyPond rendering.
"""

import logging

import pytest
from src.midi2ly.note import NoteEvent
from src.midi2ly.note_group import NoteGroup, PitchEntry
from src.midi2ly.note_group_sequence import NoteGroupSequence
from src.midi2ly.pitch_encoder import PitchEncoder
from src.midi2ly.renderer import DurationEncoder, LilypondRenderer, split_and_indent
from src.midi2ly.rhythm_splitter import DurationRasterTable, RhythmSplitter


@pytest.fixture
def renderer():
    """Renderer for 480 ticks per quarter in C."""
    return LilypondRenderer(DurationEncoder(480), PitchEncoder("c"))


class TestDurationEncoder:
    """Test length strings."""
    
    @pytest.mark.parametrize("duration,context,expected", [
        (1920, False, ("1", False)),
        (2880, False, ("1.", False)),
        (480, False, ("4", False)),
        (720, False, ("4.", False)),
        (60, False, ("32", False)),
        (320, True, ("4", True)),
        (480, True, ("4.", True)),
        (40, True, ("32", True)),
    ])
    def test_encode(self, duration, context, expected):
        """Test encoding in the current context."""
        assert DurationEncoder(480).encode(duration, context) == expected
    
    def test_context_switch(self):
        """Test that the other context is used when needed."""
        encoder = DurationEncoder(480)
        
        assert encoder.encode(320, False) == ("4", True)
        assert encoder.encode(720, True) == ("4.", False)
    
    def test_unknown_duration(self, caplog):
        """Test placeholder for lengths without encoding."""
        with caplog.at_level(logging.WARNING):
            assert DurationEncoder(480).encode(1000, True) == ("?1000?", True)
        
        assert "no direct encoding" in caplog.text


class TestLilypondRenderer:
    """Test token stream rendering."""
    
    def test_whole_note(self, renderer):
        """Test a single measure note."""
        sequence = NoteGroupSequence([NoteGroup.make_single_note(0, 1920, 60)])
        
        assert renderer.render(sequence, [1920], 60) == "c1 |"
    
    def test_repeated_duration_omitted(self, renderer):
        """Test that equal durations are written once."""
        sequence = NoteGroupSequence.from_events(
            [NoteEvent(60, 0, 480), NoteEvent(62, 960, 1440)], 1920)
        
        assert renderer.render(sequence, [1920], 60) == "c4 r d r |"
    
    def test_tie_to_following_part(self, renderer):
        """Test tie marks for split notes."""
        sequence = NoteGroupSequence([
            NoteGroup.make_single_note(0, 1440, 60),
            NoteGroup(1440, 240, [PitchEntry(60, is_tied=True)]),
            NoteGroup.make_rest(1680, 1920),
        ])
        
        assert renderer.render(sequence, [1920], 60) == "c2.~ c8 r |"
    
    def test_no_tie_for_new_note(self, renderer):
        """Test that a repeated untied note gets no tie."""
        sequence = NoteGroupSequence([
            NoteGroup.make_single_note(0, 960, 60),
            NoteGroup.make_single_note(960, 1920, 60),
        ])
        
        assert renderer.render(sequence, [1920], 60) == "c2 c |"
    
    def test_duration_after_bar(self, renderer):
        """Test that the first duration of a measure is always written."""
        sequence = NoteGroupSequence([
            NoteGroup.make_rest(0, 960),
            NoteGroup.make_single_note(960, 1920, 60),
            NoteGroup(1920, 960, [PitchEntry(60, is_tied=True)]),
            NoteGroup.make_rest(2880, 3840),
        ])
        
        assert renderer.render(sequence, [1920, 3840], 60) == "r2 c~ | c2 r |"
    
    def test_triplets(self, renderer):
        """Test triplet brackets closed at the bar."""
        sequence = NoteGroupSequence([
            NoteGroup.make_single_note(0, 320, 60),
            NoteGroup.make_single_note(320, 640, 62),
            NoteGroup.make_single_note(640, 960, 64),
            NoteGroup.make_single_note(960, 1920, 65),
        ])
        
        assert renderer.render(sequence, [960, 1920], 60) == "\\triplets { c4 d e } | f2 |"
    
    def test_triplets_inside_measure(self, renderer):
        """Test that an equal-length note keeps the triplet context."""
        sequence = NoteGroupSequence([
            NoteGroup.make_single_note(0, 320, 60),
            NoteGroup.make_single_note(320, 640, 62),
            NoteGroup.make_single_note(640, 960, 64),
            NoteGroup.make_single_note(960, 1920, 65),
        ])
        
        assert renderer.render(sequence, [1920], 60) == "\\triplets { c4 d e f2. } |"
    
    def test_open_triplets_at_end(self, renderer):
        """Test that brackets are closed at the sequence end."""
        sequence = NoteGroupSequence([NoteGroup.make_single_note(0, 320, 60)])
        
        assert renderer.render(sequence, [], 60) == "\\triplets { c4 }"
    
    def test_chords(self, renderer):
        """Test chord brackets and repetition."""
        sequence = NoteGroupSequence.from_events(
            [NoteEvent(p, 0, 480) for p in (60, 64, 67)]
            + [NoteEvent(p, 480, 960) for p in (60, 64, 67)], 1920)
        sequence.divide_musically([1920], RhythmSplitter(DurationRasterTable(480)))
        
        assert renderer.render(sequence, [1920], 60) == "<c e g>4 q r2 |"
    
    def test_drums(self, renderer):
        """Test drum mode names."""
        sequence = NoteGroupSequence.from_events(
            [NoteEvent(36, 0, 480), NoteEvent(38, 480, 960),
             NoteEvent(42, 960, 1440), NoteEvent(36, 960, 1440),
             NoteEvent(99, 1440, 1920)], 1920)
        
        assert renderer.render(sequence, [1920], None) == "bd4 sna <bd hhc> ??? |"
    
    def test_render_resets_state(self, renderer):
        """Test that each call starts from the given reference."""
        sequence = NoteGroupSequence([NoteGroup.make_single_note(0, 1920, 67)])
        
        assert renderer.render(sequence, [1920], 60) == "g'1 |"
        assert renderer.render(sequence, [1920], 60) == "g'1 |"
        assert renderer.render(sequence, [1920], 67) == "g1 |"


class TestSplitAndIndent:
    """Test bar-wise layout."""
    
    def test_complete_lines(self):
        """Test one indented line per measure."""
        assert split_and_indent("c4 d | e f |") == "    c4 d |\n    e f |\n"
    
    def test_incomplete_last_line(self):
        """Test stream without final bar."""
        assert split_and_indent("c4 | d") == "    c4 |\n    d\n"
    
    def test_options(self):
        """Test indentation and separator spacing."""
        assert split_and_indent("c4 | d |", indentation=2,
                                blank_before_separator=False) == "  c4|\n  d|\n"
