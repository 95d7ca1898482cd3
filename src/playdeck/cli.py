"""
playdeck CLI - Entry point.

Parses command line options and starts the interactive player.
"""

import argparse
import asyncio
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playdeck",
        description="playdeck - sequential playlist player backed by mpv",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Audio files or directories to play (default: configured library paths)",
    )
    parser.add_argument(
        "--rescan",
        action="store_true",
        help="Rescan the library instead of using the saved song list",
    )
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Do not resume the saved playback position",
    )
    parser.add_argument(
        "--state-dir",
        help="Directory for saved playback state (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also write log records to stderr",
    )
    return parser


def main() -> None:
    """Main entry point for the playdeck command."""
    args = build_parser().parse_args()

    # Deferred so --help works without the runtime stack
    from .main import interactive_mode

    try:
        exit_code = asyncio.run(
            interactive_mode(
                paths=args.paths,
                rescan=args.rescan,
                restore=not args.no_restore,
                state_dir=args.state_dir,
                log_level=args.log_level,
                verbose=args.verbose,
            )
        )
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
