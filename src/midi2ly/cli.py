"""
CLI tool for MIDI to LilyPond export.

Usage:
    # Print LilyPond definitions for all tracks of a MIDI file
    python -m src.midi2ly.cli export --midi song.mid
    
    # Write them to a file using a config and a different key
    python -m src.midi2ly.cli export \
        --midi song.mid \
        --output song.ly \
        --config export.yaml \
        --key f
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .converter import LilypondConverter
from .midi_reader import MidiFileReader


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def export_command(args) -> int:
    """Export all takes of a MIDI file as LilyPond note sequences."""
    logger = logging.getLogger(__name__)
    
    overrides = {
        'key': args.key,
        'adapted_notation': False if args.no_adapted_notation else None,
    }
    
    try:
        config = load_config(args.config, overrides)
        takes = MidiFileReader().read(args.midi)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    
    if not takes:
        logger.warning(f"No notes found in {args.midi}")
    
    result = LilypondConverter(config).convert_takes(takes)
    
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result, encoding='utf-8')
        logger.info(f"Wrote {len(takes)} takes to {output_path}")
    else:
        print(result, end="")
    
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Convert MIDI note data into LilyPond note sequences"
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')
    
    export_parser = subparsers.add_parser(
        'export',
        help='Export MIDI tracks as LilyPond variables'
    )
    export_parser.add_argument(
        '--midi',
        type=str,
        required=True,
        help='Path to MIDI file'
    )
    export_parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output .ly file path (default: standard output)'
    )
    export_parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to YAML config file'
    )
    export_parser.add_argument(
        '--key',
        type=str,
        default=None,
        help='Song key deciding sharp or flat note names (default: c)'
    )
    export_parser.add_argument(
        '--no-adapted-notation',
        action='store_true',
        help='Allow every note length at every grid position'
    )
    export_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    export_parser.set_defaults(func=export_command)
    
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    
    if not args.command:
        parser.print_help()
        return 1
    
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
