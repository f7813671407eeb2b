"""
Rhythmic decomposition of note durations.

A duration raster table tells which note lengths may start at which
position within a measure in normal and in triplet context. The rhythm
splitter uses it to decompose an arbitrary duration into the simplest
sequence of notatable lengths.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .quantizer import QuantizationConfig, Quantizer

logger = logging.getLogger(__name__)


class DurationKind(Enum):
    """Notatable variants of a note length with their complexity score."""
    PLAIN = "plain"
    DOTTED = "dotted"
    TRIPLET = "triplet"
    DOTTED_TRIPLET = "dotted triplet"
    
    @property
    def is_triplet(self) -> bool:
        return self in (DurationKind.TRIPLET, DurationKind.DOTTED_TRIPLET)
    
    @property
    def is_dotted(self) -> bool:
        return self in (DurationKind.DOTTED, DurationKind.DOTTED_TRIPLET)
    
    @property
    def complexity(self) -> int:
        """Preference weight: lower values are simpler to read."""
        return {
            DurationKind.PLAIN: 2,
            DurationKind.DOTTED: 3,
            DurationKind.TRIPLET: 4,
            DurationKind.DOTTED_TRIPLET: 2,
        }[self]
    
    def ticks(self, reference_duration: int) -> int:
        """Return the length in ticks for a note whose plain length is <reference_duration>."""
        duration = reference_duration
        if self.is_triplet:
            duration = duration * 2 // 3
        if self.is_dotted:
            duration = duration * 3 // 2
        return duration


@dataclass(frozen=True)
class DurationSplit:
    """
    Result of a duration decomposition.
    
    Attributes:
        durations: Note lengths in order of occurrence (empty if none found)
        complexity: Sum of the complexity scores of all lengths
        ends_as_triplet: Whether the last length is in triplet context
    """
    durations: Tuple[int, ...] = ()
    complexity: float = math.inf
    ends_as_triplet: bool = False
    
    @property
    def is_empty(self) -> bool:
        return not self.durations
    
    def prepend(self, duration: int, complexity: float) -> 'DurationSplit':
        """Return a new split starting with <duration>."""
        return DurationSplit(durations=(duration,) + self.durations,
                             complexity=self.complexity + complexity,
                             ends_as_triplet=self.ends_as_triplet)


class DurationRasterTable:
    """
    Maps (position in measure, triplet context) to the note lengths that
    may start there, longest first.
    
    Note lengths range from a whole note down to the smallest supported
    note, each as plain, dotted, triplet and dotted triplet variant.
    With adapted notation the start positions follow notation practice:
    
    - plain notes start at multiples of their length or on the off-beat
      in the first half of each pair of notes,
    - triplets start at multiples of their length or on the second and
      third triplet subdivision,
    - dotted notes and dotted triplets start at multiples of their length.
    
    Without adapted notation every length may start at any grid position.
    Measures are assumed to be at most eight quarters long.
    """
    
    def __init__(self, ticks_per_quarter_note: int, adapted_notation: bool = True,
                 config: Optional[QuantizationConfig] = None):
        """
        Build the table.
        
        Args:
            ticks_per_quarter_note: MIDI resolution
            adapted_notation: Whether start positions follow notation practice
            config: Quantization configuration (smallest note, grid step)
        """
        self.config = config or QuantizationConfig()
        self.ticks_per_quarter_note = ticks_per_quarter_note
        self.adapted_notation = adapted_notation
        self.grid_step = Quantizer(self.config).quantisation_step(ticks_per_quarter_note)
        self.maximum_measure_duration = 8 * ticks_per_quarter_note
        
        self._position_to_durations: Dict[Tuple[int, bool], List[int]] = {}
        self._duration_to_complexity: Dict[int, int] = {}
        self._dotted_durations: Dict[bool, Set[int]] = {False: set(), True: set()}
        self._build()
    
    def _build(self) -> None:
        for duration, kind in self.note_lengths():
            self._duration_to_complexity[duration] = kind.complexity
            if kind.is_dotted:
                self._dotted_durations[kind.is_triplet].add(duration)
            
            for position in self._raster_positions(duration, kind):
                durations = self._position_to_durations.setdefault((position, kind.is_triplet), [])
                if duration not in durations:
                    durations.append(duration)
        
        for durations in self._position_to_durations.values():
            durations.sort(reverse=True)
        
        logger.debug(
            f"Raster table for {self.ticks_per_quarter_note} ticks per quarter "
            f"(adapted={self.adapted_notation}): {len(self._position_to_durations)} positions"
        )
    
    def note_lengths(self) -> Iterator[Tuple[int, DurationKind]]:
        """Yield (ticks, kind) for every supported note length, longest class first."""
        reference_duration = 4 * self.ticks_per_quarter_note
        
        for _ in range(self.config.log2_minimum_note_length + 1):
            for kind in DurationKind:
                yield kind.ticks(reference_duration), kind
            reference_duration //= 2
    
    def _raster_positions(self, duration: int, kind: DurationKind) -> Iterator[int]:
        last_position = self.maximum_measure_duration - duration
        
        if not self.adapted_notation:
            yield from range(0, last_position + 1, self.grid_step)
        elif kind is DurationKind.PLAIN:
            yield from self._positions(duration, last_position, 1, 0, 1)
            yield from self._positions(duration, last_position, 4, 1, 2)
        elif kind is DurationKind.TRIPLET:
            yield from self._positions(duration, last_position, 1, 0, 1)
            for delta in (0, 1):
                for s in (1, 2):
                    yield from self._positions(duration, last_position, 3 * delta, s, 3)
        elif kind is DurationKind.DOTTED:
            for s in (0, 1):
                yield from self._positions(duration, last_position, 2, s, 1)
        else:
            yield from self._positions(duration, last_position, 1, 0, 1)
    
    @staticmethod
    def _positions(duration: int, last_position: int,
                   delta: int, s: int, t: int) -> Iterator[int]:
        """Yield raster positions <duration> * (<delta> * i + <s>) / <t> up to <last_position>."""
        i = 0
        while True:
            position = duration * (delta * i + s) // t
            if position > last_position:
                break
            yield position
            if delta == 0:
                break
            i += 1
    
    def durations_at(self, position: int, is_triplet: bool) -> List[int]:
        """Return note lengths allowed at <position> in the given context, longest first."""
        return list(self._position_to_durations.get((position, is_triplet), []))
    
    def complexity(self, duration: int) -> float:
        """Return the complexity score of <duration> (infinite if not notatable)."""
        return self._duration_to_complexity.get(duration, math.inf)
    
    def is_dotted(self, duration: int, is_triplet: bool) -> bool:
        """Tell whether <duration> is written with a dot in the given context."""
        return duration in self._dotted_durations[is_triplet]


class RhythmSplitter:
    """
    Decomposes durations into sequences of notatable lengths.
    
    The search tries at each position every allowed length not longer
    than the remaining duration, longest first, in both the current and
    the flipped triplet context, and keeps the decomposition with the
    lowest total complexity. On equal complexity the current context
    wins. At most four pieces are produced.
    """
    
    maximum_piece_count = 4
    
    def __init__(self, table: DurationRasterTable):
        """
        Initialize splitter.
        
        Args:
            table: Duration raster table to consult
        """
        self.table = table
        self._memo: Dict[Tuple[int, int, int, bool, bool], DurationSplit] = {}
    
    def find_durations(self, relative_position: int, duration: int,
                       is_in_triplet_sequence: bool,
                       dotted_allowed: bool = True) -> DurationSplit:
        """
        Decompose <duration> starting at <relative_position> in its measure.
        
        Args:
            relative_position: Tick offset from the measure start
            duration: Length to decompose in ticks
            is_in_triplet_sequence: Whether the preceding note is in triplet context
            dotted_allowed: Whether dotted lengths may be used
        
        Returns:
            DurationSplit; empty when no decomposition within the piece limit exists
        """
        result = self._find_durations(self.maximum_piece_count, relative_position,
                                      duration, is_in_triplet_sequence, dotted_allowed)
        logger.debug(
            f"Split of {duration} at {relative_position} "
            f"(triplet={is_in_triplet_sequence}): {list(result.durations)}"
        )
        return result
    
    def _find_durations(self, maximum_count: int, position: int, duration: int,
                        is_in_triplet_sequence: bool, dotted_allowed: bool) -> DurationSplit:
        if maximum_count == 0 or duration <= 0:
            return DurationSplit()
        
        key = (maximum_count, position, duration, is_in_triplet_sequence, dotted_allowed)
        if key not in self._memo:
            current = self._find_for_variant(maximum_count, position, duration,
                                             is_in_triplet_sequence, dotted_allowed)
            flipped = self._find_for_variant(maximum_count, position, duration,
                                             not is_in_triplet_sequence, dotted_allowed)
            self._memo[key] = flipped if flipped.complexity < current.complexity else current
        
        return self._memo[key]
    
    def _find_for_variant(self, maximum_count: int, position: int, duration: int,
                          is_triplet: bool, dotted_allowed: bool) -> DurationSplit:
        result = DurationSplit()
        
        for candidate in self.table.durations_at(position, is_triplet):
            if candidate > duration:
                continue
            if not dotted_allowed and self.table.is_dotted(candidate, is_triplet):
                continue
            
            if candidate == duration:
                result = DurationSplit(durations=(duration,),
                                       complexity=self.table.complexity(duration),
                                       ends_as_triplet=is_triplet)
                break
            
            rest = self._find_durations(maximum_count - 1, position + candidate,
                                        duration - candidate, is_triplet, dotted_allowed)
            if rest.is_empty:
                continue
            
            split = rest.prepend(candidate, self.table.complexity(candidate))
            if split.complexity < result.complexity:
                result = split
        
        return result


class RasterTableCache:
    """
    Holds one rhythm splitter per (ticks per quarter note, adapted notation)
    pair, built lazily on first use.
    """
    
    def __init__(self, config: Optional[QuantizationConfig] = None):
        self.config = config or QuantizationConfig()
        self._splitters: Dict[Tuple[int, bool], RhythmSplitter] = {}
    
    def splitter_for(self, ticks_per_quarter_note: int,
                     adapted_notation: bool = True) -> RhythmSplitter:
        """Return the (cached) splitter for the given resolution and notation mode."""
        key = (ticks_per_quarter_note, adapted_notation)
        
        if key not in self._splitters:
            table = DurationRasterTable(ticks_per_quarter_note, adapted_notation, self.config)
            self._splitters[key] = RhythmSplitter(table)
        
        return self._splitters[key]
    
    def table_for(self, ticks_per_quarter_note: int,
                  adapted_notation: bool = True) -> DurationRasterTable:
        """Return the (cached) raster table for the given resolution and notation mode."""
        return self.splitter_for(ticks_per_quarter_note, adapted_notation).table
    
    def __len__(self) -> int:
        return len(self._splitters)
