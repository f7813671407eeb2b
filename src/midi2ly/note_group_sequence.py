"""
Note group sequence for notation rendering.

Builds a gap-free, overlap-free sequence of note groups from note events
and splits it at measure bars and at rhythmically notatable lengths.
"""

import bisect
import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from .note import NoteEvent
from .note_group import NoteGroup
from .rhythm_splitter import RhythmSplitter

logger = logging.getLogger(__name__)


def following_measure_tick(measure_ticks: Sequence[int], position: int) -> Optional[int]:
    """Return the smallest measure tick greater than <position> or None."""
    index = bisect.bisect_right(measure_ticks, position)
    return measure_ticks[index] if index < len(measure_ticks) else None


def preceding_measure_tick(measure_ticks: Sequence[int], position: int) -> int:
    """Return the start of the measure containing <position> (0 for the first measure)."""
    index = bisect.bisect_right(measure_ticks, position)
    return measure_ticks[index - 1] if index > 0 else 0


class NoteGroupSequence:
    """
    Ordered sequence of note groups covering [0, end_position).
    
    Groups are ordered by start position; each group starts where its
    predecessor ends.
    """
    
    def __init__(self, groups: Optional[List[NoteGroup]] = None):
        self.groups: List[NoteGroup] = list(groups or [])
        self.sort()
    
    @classmethod
    def from_events(cls, events: Iterable[NoteEvent], end_position: int) -> 'NoteGroupSequence':
        """
        Build a contiguous group sequence from quantized note events.
        
        Events are merged into chords, split where they partially overlap
        and the gaps are filled with rests up to <end_position>.
        
        Args:
            events: Note events (sorted by start asc, end desc is expected)
            end_position: Tick where the sequence ends at the earliest
        
        Returns:
            NoteGroupSequence
        """
        sequence = cls()
        
        for event in sorted(events, key=lambda e: (e.start_tick, -e.end_tick)):
            sequence.add_event(event)
        
        logger.debug(f"Note groups generated: {len(sequence)}")
        sequence._fill_gaps_with_rests(end_position)
        return sequence
    
    def __len__(self) -> int:
        return len(self.groups)
    
    def __iter__(self) -> Iterator[NoteGroup]:
        return iter(self.groups)
    
    def __getitem__(self, index: int) -> NoteGroup:
        return self.groups[index]
    
    def __str__(self) -> str:
        return "[" + ", ".join(str(group) for group in self.groups) + "]"
    
    @property
    def end_position(self) -> int:
        """End tick of the last group (0 for an empty sequence)."""
        return self.groups[-1].end_position if self.groups else 0
    
    def sort(self) -> None:
        """Sort groups by start position."""
        self.groups.sort(key=lambda group: group.start_position)
    
    def add_event(self, event: NoteEvent) -> None:
        """
        Merge a single note event into the sequence.
        
        Groups overlapped by the event are split at the event boundaries
        and get the pitch added; parts of the event outside existing
        groups become new single-note groups. Every part after the first
        is marked as tied from its predecessor.
        
        Args:
            event: Note event to add
        """
        note_start, note_end = event.start_tick, event.end_tick
        
        if note_start >= note_end:
            logger.debug(f"Skipping note {event.pitch_name} at {note_start} without length")
            return
        
        for group in list(self.groups):
            if note_start >= note_end:
                break
            
            group_start, group_end = group.start_position, group.end_position
            
            if note_end <= group_start:
                # note lies completely before current group
                self.groups.append(NoteGroup.make_single_note(
                    note_start, note_end, event.pitch, note_start > event.start_tick))
                note_start = note_end
                break
            
            if note_start < group_end:
                if note_start < group_start:
                    self.groups.append(NoteGroup.make_single_note(
                        note_start, group_start, event.pitch, note_start > event.start_tick))
                    note_start = group_start
                
                if group_start < note_start:
                    group = group.split_at(note_start)
                    self.groups.append(group)
                
                if note_end < group_end:
                    self.groups.append(group.split_at(note_end))
                
                group.add_pitch(event.pitch, note_start > event.start_tick)
                note_start = group_end
        
        if note_start < note_end:
            # remaining part of note lies after all groups
            self.groups.append(NoteGroup.make_single_note(
                note_start, note_end, event.pitch, note_start > event.start_tick))
        
        self.sort()
    
    def _fill_gaps_with_rests(self, end_position: int) -> None:
        rests = []
        previous_end = 0
        
        for group in self.groups:
            if group.start_position < previous_end:
                logger.warning(
                    f"Overlapping groups: {group} starts before {previous_end}"
                )
            elif previous_end < group.start_position:
                rests.append(NoteGroup.make_rest(previous_end, group.start_position))
            previous_end = max(previous_end, group.end_position)
        
        if previous_end < end_position:
            rests.append(NoteGroup.make_rest(previous_end, end_position))
        
        self.groups.extend(rests)
        self.sort()
    
    def split_at_measures(self, measure_ticks: Sequence[int]) -> None:
        """
        Split all groups crossing a measure bar.
        
        Args:
            measure_ticks: Ascending ticks of measure starts after the first
        """
        split_is_done = True
        
        while split_is_done:
            split_is_done = False
            
            for group in list(self.groups):
                measure_tick = following_measure_tick(measure_ticks, group.start_position)
                
                if measure_tick is not None and group.end_position > measure_tick:
                    self.groups.append(group.split_at(measure_tick))
                    split_is_done = True
            
            self.sort()
    
    def divide_musically(self, measure_ticks: Sequence[int], splitter: RhythmSplitter,
                         dotted_allowed: bool = True) -> None:
        """
        Split groups into notatable lengths (plain, dotted and triplet notes).
        
        Groups must not cross measure bars. A group without a valid
        decomposition is left unchanged.
        
        Args:
            measure_ticks: Ascending ticks of measure starts after the first
            splitter: Rhythm splitter for the current resolution
            dotted_allowed: Whether dotted lengths may be used
        """
        is_in_triplet_sequence = False
        
        for group in list(self.groups):
            relative_position = (group.start_position
                                 - preceding_measure_tick(measure_ticks, group.start_position))
            
            if relative_position == 0:
                is_in_triplet_sequence = False
            
            split = splitter.find_durations(relative_position, group.duration,
                                            is_in_triplet_sequence, dotted_allowed)
            
            if split.is_empty:
                logger.warning(
                    f"No notatable split for duration {group.duration} "
                    f"at measure position {relative_position}"
                )
                is_in_triplet_sequence = False
                continue
            
            is_in_triplet_sequence = split.ends_as_triplet
            split_position = group.end_position
            
            # split from the end so that the first part stays in place
            for duration in reversed(split.durations[1:]):
                split_position -= duration
                self.groups.append(group.split_at(split_position))
        
        self.sort()
    
    def validate(self) -> List[str]:
        """
        Validate contiguity of the sequence.
        
        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []
        previous_end = 0
        
        for group in self.groups:
            if group.start_position != previous_end:
                errors.append(f"Group {group} does not start at {previous_end}")
            previous_end = group.end_position
        
        return errors
