"""
MIDI to LilyPond conversion service.

Runs the complete pipeline: quantize note events, build note groups,
split at measure bars and into notatable lengths and render LilyPond text.
"""

import logging
from typing import Iterable, Optional, Sequence

from .config import ExportConfig
from .midi_reader import Take
from .note import NoteEventLike
from .note_group_sequence import NoteGroupSequence
from .pitch_encoder import PitchEncoder
from .quantizer import Quantizer
from .renderer import DurationEncoder, LilypondRenderer, split_and_indent
from .rhythm_splitter import RasterTableCache


class LilypondConverter:
    """
    Converts MIDI note events into LilyPond note sequences.
    
    The converter owns a cache of duration raster tables so that repeated
    conversions with the same resolution share them.
    """
    
    def __init__(self, config: Optional[ExportConfig] = None):
        """
        Initialize converter.
        
        Args:
            config: Export configuration (key, notation mode, reference pitches)
        """
        self.config = config or ExportConfig()
        self.quantizer = Quantizer(self.config.quantization)
        self.pitch_encoder = PitchEncoder(self.config.key)
        self.raster_tables = RasterTableCache(self.config.quantization)
        self.logger = logging.getLogger(__name__)
    
    def convert(self, note_events: Iterable[NoteEventLike], measure_ticks: Sequence[int],
                end_tick: int, ticks_per_quarter_note: int,
                reference_pitch: Optional[int],
                adapted_notation_enabled: Optional[bool] = None) -> str:
        """
        Convert note events into a LilyPond note sequence.
        
        Args:
            note_events: Events with pitch, start and end tick
            measure_ticks: Ascending ticks of measure starts after the first
            end_tick: Tick where the sequence ends at the earliest
            ticks_per_quarter_note: MIDI resolution
            reference_pitch: Relative start pitch; None selects drum mode
            adapted_notation_enabled: Whether lengths follow notation
                practice (configuration default if None)
        
        Returns:
            "\\relative <note> { ... }" or "\\drummode { ... }" block with
            one measure per line
        """
        if adapted_notation_enabled is None:
            adapted_notation_enabled = self.config.adapted_notation
        
        measure_ticks = sorted(measure_ticks)
        note_list_string = self.convert_note_list(note_events, measure_ticks, end_tick,
                                                  ticks_per_quarter_note, reference_pitch,
                                                  adapted_notation_enabled)
        
        if reference_pitch is None:
            note_list_reference = "\\drummode"
        else:
            note_list_reference = "\\relative " + self.pitch_encoder.absolute_name(reference_pitch)
        
        body = split_and_indent(note_list_string, indentation=self.config.indentation)
        return f"{note_list_reference} {{\n{body}}}\n"
    
    def convert_note_list(self, note_events: Iterable[NoteEventLike],
                          measure_ticks: Sequence[int], end_tick: int,
                          ticks_per_quarter_note: int, reference_pitch: Optional[int],
                          adapted_notation_enabled: bool = True) -> str:
        """
        Convert note events into a single-line LilyPond token stream.
        
        Args:
            note_events: Events with pitch, start and end tick
            measure_ticks: Ascending ticks of measure starts after the first
            end_tick: Tick where the sequence ends at the earliest
            ticks_per_quarter_note: MIDI resolution
            reference_pitch: Relative start pitch; None selects drum mode
            adapted_notation_enabled: Whether lengths follow notation practice
        
        Returns:
            Token stream with bar symbols
        """
        sequence = self.build_sequence(note_events, measure_ticks, end_tick,
                                       ticks_per_quarter_note, adapted_notation_enabled,
                                       is_drum_mode=reference_pitch is None)
        renderer = LilypondRenderer(
            DurationEncoder(ticks_per_quarter_note, self.config.quantization.log2_minimum_note_length),
            self.pitch_encoder
        )
        return renderer.render(sequence, measure_ticks, reference_pitch)
    
    def build_sequence(self, note_events: Iterable[NoteEventLike],
                       measure_ticks: Sequence[int], end_tick: int,
                       ticks_per_quarter_note: int,
                       adapted_notation_enabled: bool = True,
                       is_drum_mode: bool = False) -> NoteGroupSequence:
        """
        Build the measure- and rhythm-split note group sequence.
        
        Args:
            note_events: Events with pitch, start and end tick
            measure_ticks: Ascending ticks of measure starts after the first
            end_tick: Tick where the sequence ends at the earliest
            ticks_per_quarter_note: MIDI resolution
            adapted_notation_enabled: Whether lengths follow notation practice
            is_drum_mode: Whether pitches outside the MIDI range are kept
                (they become unknown drum names)
        
        Returns:
            NoteGroupSequence ready for rendering
        """
        events = self.quantizer.quantize(note_events, ticks_per_quarter_note)
        
        if not is_drum_mode:
            for event in events:
                if not event.is_midi_pitch:
                    self.logger.warning(f"Dropping note with pitch {event.pitch} outside the MIDI range")
            events = [event for event in events if event.is_midi_pitch]
        
        sequence = NoteGroupSequence.from_events(events, end_tick)
        
        for error in sequence.validate():
            self.logger.warning(error)
        
        sequence.split_at_measures(measure_ticks)
        splitter = self.raster_tables.splitter_for(ticks_per_quarter_note, adapted_notation_enabled)
        sequence.divide_musically(measure_ticks, splitter)
        self.logger.debug(f"Note groups: {sequence}")
        return sequence
    
    def convert_take(self, take_name: str, ticks_per_quarter_note: int,
                     note_events: Iterable[NoteEventLike], measure_ticks: Sequence[int],
                     end_tick: int) -> str:
        """
        Convert a named take into a LilyPond variable definition.
        
        The reference pitch is derived from the first word of <take_name>
        (drum mode for drum instruments).
        
        Args:
            take_name: Take name like "keyboard top"
            ticks_per_quarter_note: MIDI resolution
            note_events: Events with pitch, start and end tick
            measure_ticks: Ascending ticks of measure starts after the first
            end_tick: Tick where the sequence ends at the earliest
        
        Returns:
            "<name> = <block>" string
        """
        variable_name = self.adapted_take_name(take_name)
        reference_pitch = self.config.reference_pitch_for(take_name)
        self.logger.info(f"Converting take '{take_name}' as {variable_name} "
                         f"(reference pitch {reference_pitch})")
        
        block = self.convert(note_events, measure_ticks, end_tick,
                             ticks_per_quarter_note, reference_pitch)
        return f"{variable_name} = {block}"
    
    def convert_takes(self, takes: Iterable[Take]) -> str:
        """
        Convert several takes into consecutive variable definitions.
        
        A take whose name occurred before is skipped.
        
        Args:
            takes: Takes as read from a MIDI file
        
        Returns:
            Definitions separated by blank lines
        """
        processed_names = set()
        definitions = []
        
        for take in takes:
            if take.name in processed_names:
                self.logger.warning(f"Skipping duplicate take '{take.name}'")
                continue
            
            processed_names.add(take.name)
            definitions.append(self.convert_take(take.name, take.ticks_per_quarter_note,
                                                 take.note_events, take.measure_ticks,
                                                 take.end_tick))
        
        return "\n".join(definitions)
    
    @staticmethod
    def adapted_take_name(take_name: str) -> str:
        """Make LilyPond variable name from <take_name> ("keyboard top" -> "keyboardTop")."""
        prefix, *words = take_name.split(" ")
        return prefix + "".join(word[:1].upper() + word[1:] for word in words)
