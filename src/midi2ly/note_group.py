"""
Note group data structure.

A note group is a rest or a set of simultaneously sounding pitches that
occupies one contiguous tick interval.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PitchEntry:
    """
    Single pitch within a note group.
    
    Attributes:
        pitch: MIDI note number
        is_tied: True if the pitch continues from the previous group
    """
    pitch: int
    is_tied: bool = False


@dataclass
class NoteGroup:
    """
    Represents a chord, a single note or a rest.
    
    Attributes:
        start_position: Start in ticks relative to sequence start
        duration: Length in ticks
        pitch_entries: Pitches ordered ascendingly (empty for a rest)
    """
    start_position: int
    duration: int
    pitch_entries: List[PitchEntry] = field(default_factory=list)
    
    def __post_init__(self):
        """Validate group parameters."""
        if self.duration <= 0:
            raise ValueError(f"Invalid duration: {self.duration}. Must be > 0.")
        self.pitch_entries.sort(key=lambda entry: entry.pitch)
    
    @classmethod
    def make_rest(cls, start_position: int, end_position: int) -> 'NoteGroup':
        """Make a rest group covering [start_position, end_position)."""
        return cls(start_position=start_position,
                   duration=end_position - start_position)
    
    @classmethod
    def make_single_note(cls, start_position: int, end_position: int,
                         pitch: int, is_tied: bool = False) -> 'NoteGroup':
        """Make a group for a single pitch covering [start_position, end_position)."""
        return cls(start_position=start_position,
                   duration=end_position - start_position,
                   pitch_entries=[PitchEntry(pitch, is_tied)])
    
    @property
    def is_rest(self) -> bool:
        """A group without pitches is a rest."""
        return not self.pitch_entries
    
    @property
    def end_position(self) -> int:
        """Calculate group end (exclusive)."""
        return self.start_position + self.duration
    
    @property
    def pitches(self) -> List[int]:
        """Pitches of the group in ascending order."""
        return [entry.pitch for entry in self.pitch_entries]
    
    def entry_for(self, pitch: int) -> Optional[PitchEntry]:
        """Return the entry for <pitch> or None."""
        for entry in self.pitch_entries:
            if entry.pitch == pitch:
                return entry
        return None
    
    def add_pitch(self, pitch: int, is_tied: bool) -> None:
        """
        Add <pitch> to the group keeping pitch order.
        
        A pitch already present is not duplicated; the later event
        decides its tie status.
        """
        entry = self.entry_for(pitch)
        
        if entry is not None:
            logger.warning(
                f"Overlapping notes at pitch {pitch} in group starting at "
                f"{self.start_position}; merging them"
            )
            entry.is_tied = is_tied
            return
        
        self.pitch_entries.append(PitchEntry(pitch, is_tied))
        self.pitch_entries.sort(key=lambda e: e.pitch)
    
    def split_at(self, split_position: int) -> 'NoteGroup':
        """
        Split group at <split_position> and return the later part.
        
        This group is shortened to end at the split position; the later
        part inherits all pitches marked as tied from this group.
        
        Args:
            split_position: Absolute tick strictly inside the group
        
        Returns:
            New group covering [split_position, old end)
        """
        if not self.start_position < split_position < self.end_position:
            raise ValueError(
                f"Invalid split position: {split_position}. Must be inside "
                f"({self.start_position}, {self.end_position})."
            )
        
        group_end = self.end_position
        self.duration = split_position - self.start_position
        later = NoteGroup(
            start_position=split_position,
            duration=group_end - split_position,
            pitch_entries=[PitchEntry(entry.pitch, True) for entry in self.pitch_entries]
        )
        logger.debug(f"Split {self} / {later}")
        return later
    
    def __str__(self) -> str:
        """Short representation: start+duration and pitches with tie-in marks."""
        if self.is_rest:
            content = "r"
        else:
            content = ",".join(f"{'~' if e.is_tied else ''}{e.pitch}"
                               for e in self.pitch_entries)
        return f"{self.start_position}+{self.duration}:{content}"
