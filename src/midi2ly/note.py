"""
Note event data structure for MIDI input.

Represents a single timed, pitched note as delivered by the host or a MIDI file.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Union

LOWEST_MIDI_PITCH = 0
HIGHEST_MIDI_PITCH = 127


@dataclass(frozen=True)
class NoteEvent:
    """
    Represents a single MIDI note event.
    
    Pitches above the MIDI range are accepted so that drum takes can
    show them as unknown instruments.
    
    Attributes:
        pitch: Note number (MIDI pitches are 0-127)
        start_tick: Note onset in MIDI ticks
        end_tick: Note release in MIDI ticks
    """
    pitch: int
    start_tick: int
    end_tick: int
    
    def __post_init__(self):
        """Validate note event parameters."""
        if self.pitch < LOWEST_MIDI_PITCH:
            raise ValueError(f"Invalid pitch: {self.pitch}. Must be >= 0.")
        if self.start_tick < 0:
            raise ValueError(f"Invalid start_tick: {self.start_tick}. Must be >= 0.")
        if self.end_tick < self.start_tick:
            raise ValueError(
                f"Invalid end_tick: {self.end_tick}. Must be >= start_tick ({self.start_tick})."
            )
    
    @property
    def duration(self) -> int:
        """Calculate note length in ticks."""
        return self.end_tick - self.start_tick
    
    @property
    def is_midi_pitch(self) -> bool:
        """Check if pitch lies in the MIDI range 0-127."""
        return LOWEST_MIDI_PITCH <= self.pitch <= HIGHEST_MIDI_PITCH
    
    @property
    def pitch_name(self) -> str:
        """Convert MIDI pitch to note name (e.g., 60 -> C4)."""
        note_names = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']
        octave = (self.pitch // 12) - 1
        return f"{note_names[self.pitch % 12]}{octave}"
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'NoteEvent':
        """Build event from a mapping with 'pitch', 'start_tick' and 'end_tick'."""
        return cls(
            pitch=int(data['pitch']),
            start_tick=int(data['start_tick']),
            end_tick=int(data['end_tick'])
        )


NoteEventLike = Union[NoteEvent, Mapping[str, Any]]


def as_note_event(event: NoteEventLike) -> NoteEvent:
    """Return <event> as NoteEvent, converting mappings on the way."""
    if isinstance(event, NoteEvent):
        return event
    return NoteEvent.from_dict(event)
