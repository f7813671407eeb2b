"""
midi2ly - MIDI to LilyPond note sequence conversion.

Converts timed MIDI note events into relative-pitch LilyPond notation
with measures, ties, chords, triplets and drum notes.
"""

from .note import NoteEvent
from .note_group import NoteGroup, PitchEntry
from .note_group_sequence import NoteGroupSequence
from .quantizer import QuantizationConfig, Quantizer
from .rhythm_splitter import DurationRasterTable, DurationSplit, RhythmSplitter, RasterTableCache
from .pitch_encoder import NotePitch, PitchEncoder, ReferenceState
from .renderer import DurationEncoder, LilypondRenderer
from .config import ExportConfig, load_config
from .midi_reader import MidiFileReader, Take
from .converter import LilypondConverter

__version__ = "0.1.0"

__all__ = [
    'NoteEvent',
    'NoteGroup',
    'PitchEntry',
    'NoteGroupSequence',
    'QuantizationConfig',
    'Quantizer',
    'DurationRasterTable',
    'DurationSplit',
    'RhythmSplitter',
    'RasterTableCache',
    'NotePitch',
    'PitchEncoder',
    'ReferenceState',
    'DurationEncoder',
    'LilypondRenderer',
    'ExportConfig',
    'load_config',
    'MidiFileReader',
    'Take',
    'LilypondConverter',
]
