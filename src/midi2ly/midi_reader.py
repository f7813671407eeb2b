"""
Standard MIDI file reading.

Turns every track with notes into a take: its note events, the measure
bar ticks derived from the time signatures and the end tick.
"""

import logging
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple, Union

from mido import MidiFile

from .note import NoteEvent

logger = logging.getLogger(__name__)

# (tick, numerator, denominator)
TimeSignature = Tuple[int, int, int]
DEFAULT_TIME_SIGNATURE: TimeSignature = (0, 4, 4)


@dataclass
class Take:
    """
    Conversion input for one track.
    
    Attributes:
        name: Take name (track name or generated "track A", "track B", ...)
        ticks_per_quarter_note: MIDI resolution
        note_events: Notes of the track in ticks
        measure_ticks: Ticks of all measure starts after the first
        end_tick: First bar line at or after the last note end
    """
    name: str
    ticks_per_quarter_note: int
    note_events: List[NoteEvent] = field(default_factory=list)
    measure_ticks: List[int] = field(default_factory=list)
    end_tick: int = 0


def measure_ticks_for(time_signatures: List[TimeSignature], end_position: int,
                      ticks_per_quarter_note: int) -> List[int]:
    """
    Return the bar line ticks from the first measure end up to the first
    bar line at or after <end_position>.
    
    Args:
        time_signatures: Time signature changes (tick, numerator, denominator)
        end_position: Tick the bars have to reach
        ticks_per_quarter_note: MIDI resolution
    
    Returns:
        Ascending list of measure ticks (at least one)
    """
    signatures = sorted(time_signatures)
    if not signatures or signatures[0][0] > 0:
        signatures.insert(0, DEFAULT_TIME_SIGNATURE)
    
    ticks = []
    position = 0
    index = 0
    
    while True:
        while index + 1 < len(signatures) and signatures[index + 1][0] <= position:
            index += 1
        
        _, numerator, denominator = signatures[index]
        position += max(1, numerator * 4 * ticks_per_quarter_note // denominator)
        ticks.append(position)
        
        if position >= end_position:
            return ticks


class MidiFileReader:
    """Reads takes from standard MIDI files using mido."""
    
    def read(self, midi_path: Union[str, Path]) -> List[Take]:
        """
        Read all takes of a MIDI file.
        
        Args:
            midi_path: Path to .mid file
        
        Returns:
            One take per track containing notes, in track order
        """
        midi_path = Path(midi_path)
        if not midi_path.exists():
            raise FileNotFoundError(f"MIDI file not found: {midi_path}")
        
        midi_file = MidiFile(midi_path)
        ticks_per_quarter_note = midi_file.ticks_per_beat
        time_signatures = self._time_signatures(midi_file)
        takes = []
        
        for track in midi_file.tracks:
            note_events = self._note_events(track)
            if not note_events:
                continue
            
            name = track.name.strip() or self._generated_name(len(takes))
            last_note_end = max(event.end_tick for event in note_events)
            measure_ticks = measure_ticks_for(time_signatures, last_note_end,
                                              ticks_per_quarter_note)
            takes.append(Take(name=name,
                              ticks_per_quarter_note=ticks_per_quarter_note,
                              note_events=note_events,
                              measure_ticks=measure_ticks,
                              end_tick=measure_ticks[-1]))
            logger.info(f"Read take '{name}' with {len(note_events)} notes "
                        f"and {len(measure_ticks)} measures")
        
        return takes
    
    @staticmethod
    def _generated_name(index: int) -> str:
        letters = string.ascii_uppercase
        suffix = letters[index] if index < len(letters) else str(index + 1)
        return f"track {suffix}"
    
    @staticmethod
    def _time_signatures(midi_file: MidiFile) -> List[TimeSignature]:
        signatures = []
        
        for track in midi_file.tracks:
            current_tick = 0
            for msg in track:
                current_tick += msg.time
                if msg.type == 'time_signature':
                    signatures.append((current_tick, msg.numerator, msg.denominator))
        
        return signatures
    
    @staticmethod
    def _note_events(track) -> List[NoteEvent]:
        """Pair note-on and note-off messages of <track> into note events."""
        events = []
        active_notes: Dict[Tuple[int, int], int] = {}  # (channel, pitch) -> start tick
        current_tick = 0
        
        for msg in track:
            current_tick += msg.time
            
            if msg.type == 'note_on' and msg.velocity > 0:
                key = (msg.channel, msg.note)
                if key in active_notes:
                    logger.debug(f"Restarting note {msg.note} at tick {current_tick}")
                    events.append(NoteEvent(msg.note, active_notes[key], current_tick))
                active_notes[key] = current_tick
            
            elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
                key = (msg.channel, msg.note)
                if key in active_notes:
                    events.append(NoteEvent(msg.note, active_notes.pop(key), current_tick))
        
        for (_, pitch), start_tick in active_notes.items():
            logger.warning(f"Note {pitch} started at tick {start_tick} is never released; "
                           f"ending it at track end {current_tick}")
            events.append(NoteEvent(pitch, start_tick, current_tick))
        
        events.sort(key=lambda e: (e.start_tick, -e.end_tick))
        return events
