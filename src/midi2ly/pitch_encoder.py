"""
Pitch encoding for LilyPond note names.

Converts MIDI pitches into relative LilyPond note names (or drum names)
and keeps track of the reference note and chord while a sequence is
encoded.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple

from .note_group import NoteGroup

logger = logging.getLogger(__name__)

SHARP_KEYS = ("c", "g", "d", "a", "e", "b", "fs", "cs")
SHARP_NOTE_NAMES = ("c", "cs", "d", "ds", "e", "f", "fs", "g", "gs", "a", "as", "b")
FLAT_NOTE_NAMES = ("c", "df", "d", "ef", "e", "f", "gf", "g", "af", "a", "bf", "b")
BASE_NOTE_NAMES = "cdefgab"

# short LilyPond drum names for general MIDI percussion pitches 35..81
DRUM_NAMES = (
    "bda", "bd", "ss", "sna", "hc", "sn",
    "tomfl", "hhc", "tomfh", "hhp", "toml", "hho", "tomml", "tommh", "cymc", "tomh",
    "cymr", "cymch", "rb", "tamb", "cyms", "cb", "cymcb", "vibs", "cymrb", "boh",
    "bol", "cghm", "cgho", "cgl", "timh", "timl", "agh", "agl", "cab", "mar",
    "whs", "whl", "guis", "guil", "cl", "wbh", "wbl", "cuim", "cuio", "trim",
    "trio",
)
LOWEST_DRUM_PITCH = 35
HIGHEST_DRUM_PITCH = 81
UNKNOWN_DRUM_NAME = "???"


def note_names_for_key(key: str) -> Tuple[str, ...]:
    """Return the twelve note names used in <key> (sharps or flats)."""
    return SHARP_NOTE_NAMES if key.strip().lower() in SHARP_KEYS else FLAT_NOTE_NAMES


def drum_name(pitch: int) -> str:
    """Return the LilyPond drum name for <pitch> or a placeholder when out of range."""
    if LOWEST_DRUM_PITCH <= pitch <= HIGHEST_DRUM_PITCH:
        return DRUM_NAMES[pitch - LOWEST_DRUM_PITCH]
    logger.warning(f"No drum name for pitch {pitch}")
    return UNKNOWN_DRUM_NAME


@dataclass(frozen=True)
class NotePitch:
    """
    A note name with its octave.
    
    Attributes:
        name: LilyPond note name (e.g. "c", "fs", "bf")
        octave: Octave number where MIDI 60 is in octave 4
    """
    name: str
    octave: int
    
    @classmethod
    def from_midi(cls, pitch: int, note_names: Tuple[str, ...] = SHARP_NOTE_NAMES) -> 'NotePitch':
        """Make note for MIDI <pitch> using <note_names> for the pitch classes."""
        return cls(name=note_names[pitch % 12], octave=pitch // 12 - 1)
    
    @property
    def absolute_name(self) -> str:
        """Absolute LilyPond name; octave 3 is unmarked."""
        octave = self.octave - 3
        marker = "'" if octave > 0 else ","
        return self.name + marker * abs(octave)
    
    @property
    def step(self) -> int:
        """Diatonic step of the note letter (c=0 .. b=6)."""
        return BASE_NOTE_NAMES.index(self.name[0])
    
    def relative_name(self, previous: 'NotePitch') -> str:
        """
        Return the name of this note in relative mode following <previous>.
        
        The octave markers are chosen such that LilyPond, which places a
        relative note within a fourth of its predecessor, arrives at this
        note.
        
        Args:
            previous: Preceding reference note
        
        Returns:
            Note name with "'" or "," octave markers
        """
        marker_count = abs(self.octave - previous.octave)
        current_step, previous_step = self.step, previous.step
        
        if marker_count != 0:
            direction = 1 if self.octave > previous.octave else -1
        elif previous.name == self.name:
            return self.name
        else:
            direction = 1 if current_step > previous_step else -1
        
        if (direction == 1 and previous_step > current_step
                or direction == -1 and previous_step < current_step):
            current_step += direction * 7
            marker_count -= 1
        
        if abs(previous_step - current_step) >= 4:
            marker_count += 1
        
        marker = "'" if direction == 1 else ","
        return self.name + marker * marker_count
    
    def __str__(self) -> str:
        return f"{self.name}/{self.octave}"


@dataclass
class ReferenceState:
    """
    Running reference values while a sequence is encoded.
    
    Attributes:
        note: Reference for relative pitches; None selects drum mode
        chord: Pitches of the last chord for the repetition symbol
        duration: Last written duration in ticks (0 forces output)
        is_in_triplet_sequence: Whether the last duration was in triplet context
    """
    note: Optional[NotePitch] = None
    chord: FrozenSet[int] = frozenset()
    duration: int = 0
    is_in_triplet_sequence: bool = False
    
    @property
    def is_drum_mode(self) -> bool:
        return self.note is None


class PitchEncoder:
    """
    Encodes note groups as LilyPond pitch strings.
    
    Relative note names are computed against the reference note of a
    ReferenceState, repeated chords use the chord repetition symbol.
    A state without reference note encodes drum names.
    """
    
    rest_symbol = "r"
    chord_repetition_symbol = "q"
    tie_symbol = "~"
    
    def __init__(self, key: str = "c"):
        """
        Initialize encoder.
        
        Args:
            key: Song key deciding between sharp and flat names
        """
        self.key = key
        self.note_names = note_names_for_key(key)
    
    def initial_state(self, reference_pitch: Optional[int]) -> ReferenceState:
        """Return the state for a sequence starting at <reference_pitch> (None for drums)."""
        if reference_pitch is None:
            return ReferenceState()
        return ReferenceState(note=NotePitch.from_midi(reference_pitch, self.note_names))
    
    def absolute_name(self, pitch: int) -> str:
        """Return the absolute LilyPond name of <pitch>."""
        return NotePitch.from_midi(pitch, self.note_names).absolute_name
    
    def encode(self, group: NoteGroup, tied_pitches: Set[int],
               state: ReferenceState) -> Tuple[str, str]:
        """
        Encode pitches of <group> and update the reference values in <state>.
        
        Args:
            group: Note group to encode
            tied_pitches: Pitches of the group tied into the following group
            state: Running reference state
        
        Returns:
            Pitch string and tie string (to be placed after the duration)
        """
        if group.is_rest:
            return self.rest_symbol, ""
        
        pitches = group.pitches
        all_are_tied = all(pitch in tied_pitches for pitch in pitches)
        none_is_tied = not any(pitch in tied_pitches for pitch in pitches)
        tie_string = self.tie_symbol if all_are_tied else ""
        
        if len(pitches) > 1:
            chord = frozenset(pitches)
            is_repetition = chord == state.chord and (all_are_tied or none_is_tied)
            state.chord = chord
            
            if is_repetition:
                return self.chord_repetition_symbol, tie_string
        
        names = self._note_names(pitches, tied_pitches, all_are_tied, state)
        logger.debug(f"Pitches {pitches} -> {names}, reference {state.note}")
        
        if len(names) == 1:
            return names[0], tie_string
        return "<" + " ".join(names) + ">", tie_string
    
    def _note_names(self, pitches: List[int], tied_pitches: Set[int],
                    all_are_tied: bool, state: ReferenceState) -> List[str]:
        names = []
        is_drum_mode = state.is_drum_mode
        previous = state.note
        
        for pitch in pitches:
            if is_drum_mode:
                name = drum_name(pitch)
            else:
                note = NotePitch.from_midi(pitch, self.note_names)
                name = note.relative_name(previous)
                previous = note
            
            if pitch in tied_pitches and not all_are_tied:
                name += self.tie_symbol
            names.append(name)
        
        # only single notes move the relative reference
        if not is_drum_mode and len(pitches) == 1:
            state.note = previous
        
        return names
