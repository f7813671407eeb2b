#!/usr/bin/env python3
"""
midi2ly - MIDI to LilyPond note sequence conversion

Main entry point for the midi2ly application.
"""

import sys

from src.midi2ly import __version__
from src.midi2ly.cli import main as cli_main


def main():
    """Main entry point."""
    if len(sys.argv) > 1 and sys.argv[1] == "--version":
        print(f"midi2ly {__version__}")
        return 0
    
    return cli_main(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
