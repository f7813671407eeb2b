"""
Tick quantization for MIDI note events.

Snaps note positions to the grid of the smallest notatable note.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

import numpy as np

from .note import NoteEvent, NoteEventLike, as_note_event

logger = logging.getLogger(__name__)


@dataclass
class QuantizationConfig:
    """Configuration for tick quantization."""
    # base-2 logarithm of the smallest note; its triplet is the grid unit
    # (5 = 1/32 triplet)
    log2_minimum_note_length: int = 5


class Quantizer:
    """
    Quantizes note event ticks to the notation grid.
    
    The grid step is the length of a triplet of the smallest supported
    note; positions are rounded half up to the nearest grid multiple.
    """
    
    def __init__(self, config: QuantizationConfig):
        """
        Initialize quantizer.
        
        Args:
            config: Quantization configuration
        """
        self.config = config
    
    def quantisation_step(self, ticks_per_quarter_note: int) -> int:
        """
        Return the grid step in ticks for <ticks_per_quarter_note>.
        
        Args:
            ticks_per_quarter_note: MIDI resolution
        
        Returns:
            Length of the smallest supported triplet note in ticks
        """
        if ticks_per_quarter_note <= 0:
            raise ValueError(
                f"Invalid ticks_per_quarter_note: {ticks_per_quarter_note}. Must be > 0."
            )
        
        factor = 2 ** (self.config.log2_minimum_note_length - 2)
        return max(1, ticks_per_quarter_note * 2 // (factor * 3))
    
    def quantize(self, events: Iterable[NoteEventLike],
                 ticks_per_quarter_note: int) -> List[NoteEvent]:
        """
        Quantize note events to the grid and sort them.
        
        Events are ordered by ascending start and, for equal starts, by
        descending end so that longer notes come first.
        
        Args:
            events: Note events to quantize
            ticks_per_quarter_note: MIDI resolution
        
        Returns:
            List of quantized, sorted note events
        """
        events = self._valid_events(events)
        
        if not events:
            return []
        
        step = self.quantisation_step(ticks_per_quarter_note)
        starts = self.snap([event.start_tick for event in events], step)
        ends = self.snap([event.end_tick for event in events], step)
        
        quantized = []
        for event, start, end in zip(events, starts, ends):
            if start >= end:
                logger.warning(
                    f"Note {event.pitch_name} at tick {event.start_tick} has no "
                    f"length after quantisation (step {step})"
                )
            quantized.append(NoteEvent(pitch=event.pitch, start_tick=int(start), end_tick=int(end)))
        
        quantized.sort(key=lambda e: (e.start_tick, -e.end_tick))
        logger.debug(f"Quantized {len(quantized)} events with step {step}")
        return quantized
    
    def _valid_events(self, events: Iterable[NoteEventLike]) -> List[NoteEvent]:
        """Convert <events> to NoteEvents, dropping malformed ones with a warning."""
        valid_events = []
        
        for event in events:
            try:
                valid_events.append(as_note_event(event))
            except (KeyError, ValueError) as e:
                logger.warning(f"Dropping malformed note event {event!r}: {e}")
        
        return valid_events
    
    @staticmethod
    def snap(positions: List[int], step: int) -> np.ndarray:
        """Round <positions> half up to the nearest multiple of <step>."""
        ticks = np.asarray(positions, dtype=np.int64) + step // 2
        return ticks - ticks % step
