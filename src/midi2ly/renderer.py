"""
LilyPond rendering of note group sequences.

Walks a measure- and rhythm-split note group sequence and produces the
LilyPond token stream with durations, ties, triplet brackets and bars.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .note_group import NoteGroup
from .note_group_sequence import NoteGroupSequence, following_measure_tick
from .pitch_encoder import PitchEncoder, ReferenceState

logger = logging.getLogger(__name__)

TRIPLET_START = "\\triplets { "
TRIPLET_END = "}"
BAR_SYMBOL = "|"


class DurationEncoder:
    """
    Maps tick durations to LilyPond length strings.
    
    In normal context a note of length 1/n is "n" and its dotted form
    "n."; in triplet context the triplet of 1/n is "n" and the dotted
    triplet (equal in ticks to the plain note) "n.".
    """
    
    def __init__(self, ticks_per_quarter_note: int, log2_minimum_note_length: int = 5):
        self._encodings: Dict[Tuple[int, bool], str] = {}
        reference_duration = 4 * ticks_per_quarter_note
        value = 1
        
        for _ in range(log2_minimum_note_length + 1):
            st = str(value)
            self._encodings[(reference_duration, False)] = st
            self._encodings[(reference_duration * 3 // 2, False)] = st + "."
            self._encodings[(reference_duration * 2 // 3, True)] = st
            self._encodings[(reference_duration, True)] = st + "."
            value *= 2
            reference_duration //= 2
        
        self._acceptable_durations = {duration for duration, _ in self._encodings}
    
    def encode(self, duration: int, is_in_triplet_sequence: bool) -> Tuple[str, bool]:
        """
        Return the length string for <duration> and the resulting context.
        
        The current context is tried first, then the other one. Durations
        without a direct encoding become "?<ticks>?".
        
        Args:
            duration: Length in ticks
            is_in_triplet_sequence: Context of the preceding note
        
        Returns:
            Length string and whether it is in triplet context
        """
        if duration not in self._acceptable_durations:
            logger.warning(f"Duration {duration} has no direct encoding")
            return f"?{duration}?", is_in_triplet_sequence
        
        key = (duration, is_in_triplet_sequence)
        if key not in self._encodings:
            is_in_triplet_sequence = not is_in_triplet_sequence
            key = (duration, is_in_triplet_sequence)
        
        return self._encodings[key], is_in_triplet_sequence


class LilypondRenderer:
    """
    Renders a note group sequence as a LilyPond token stream.
    
    Durations are omitted when equal to the previous one, triplet
    brackets are opened and closed at context changes and a bar symbol
    follows each group ending on a measure bar.
    """
    
    def __init__(self, duration_encoder: DurationEncoder, pitch_encoder: PitchEncoder):
        """
        Initialize renderer.
        
        Args:
            duration_encoder: Encoder for note lengths
            pitch_encoder: Encoder for note names
        """
        self.duration_encoder = duration_encoder
        self.pitch_encoder = pitch_encoder
        self.state = ReferenceState()
    
    def render(self, sequence: NoteGroupSequence, measure_ticks: Sequence[int],
               reference_pitch: Optional[int]) -> str:
        """
        Render <sequence> with bars at <measure_ticks>.
        
        Args:
            sequence: Measure- and rhythm-split note group sequence
            measure_ticks: Ascending ticks of measure starts after the first
            reference_pitch: Start pitch for relative notes; None for drum mode
        
        Returns:
            Token stream as a single line
        """
        self.state = self.pitch_encoder.initial_state(reference_pitch)
        groups = sequence.groups
        result = []
        
        for i, group in enumerate(groups):
            following = groups[i + 1] if i + 1 < len(groups) else None
            previous_triplet_status = self.state.is_in_triplet_sequence
            group_string = self._group_string(group, self._tied_pitches(group, following))
            
            if i > 0:
                result.append(" ")
            
            if not previous_triplet_status and self.state.is_in_triplet_sequence:
                result.append(TRIPLET_START)
            elif previous_triplet_status and not self.state.is_in_triplet_sequence:
                result.append(TRIPLET_END + " ")
            
            result.append(group_string)
            
            if following_measure_tick(measure_ticks, group.start_position) == group.end_position:
                # no implicit duration or triplet context across a bar
                if self.state.is_in_triplet_sequence:
                    result.append(" " + TRIPLET_END)
                self.state.is_in_triplet_sequence = False
                self.state.duration = 0
                result.append(" " + BAR_SYMBOL)
        
        if self.state.is_in_triplet_sequence:
            result.append(" " + TRIPLET_END)
        
        return "".join(result)
    
    @staticmethod
    def _tied_pitches(group: NoteGroup, following: Optional[NoteGroup]) -> Set[int]:
        """Return pitches of <group> continuing into <following>."""
        if following is None or group.is_rest:
            return set()
        return {entry.pitch for entry in following.pitch_entries
                if entry.is_tied and entry.pitch in group.pitches}
    
    def _group_string(self, group: NoteGroup, tied_pitches: Set[int]) -> str:
        pitch_string, tie_string = self.pitch_encoder.encode(group, tied_pitches, self.state)
        
        if group.duration == self.state.duration:
            duration_string = ""
        else:
            duration_string, self.state.is_in_triplet_sequence = \
                self.duration_encoder.encode(group.duration, self.state.is_in_triplet_sequence)
            self.state.duration = group.duration
        
        return pitch_string + duration_string + tie_string


def split_and_indent(st: str, separator: str = BAR_SYMBOL, indentation: int = 4,
                     blank_before_separator: bool = True) -> str:
    """
    Split <st> at <separator> into indented lines.
    
    Each line is trimmed and prefixed by <indentation> blanks; trailing
    empty lines are dropped and the separator is kept at the line ends.
    
    Args:
        st: Token stream
        separator: Line separator (the bar symbol)
        indentation: Number of leading blanks per line
        blank_before_separator: Whether a blank precedes the separator
    
    Returns:
        Multi-line string ending with a newline
    """
    lines: List[str] = [line.strip() for line in st.split(separator)]
    
    while lines and not lines[-1]:
        lines.pop()
    
    last_line_is_complete = st.rstrip().endswith(separator)
    indentation_string = " " * indentation
    separator = (" " if blank_before_separator else "") + separator
    separator_string = separator + "\n" + indentation_string
    
    return (indentation_string
            + separator_string.join(lines)
            + (separator if last_line_is_complete else "")
            + "\n")
