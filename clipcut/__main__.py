"""
Command-line interface for clipcut
"""
import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import ENGINE_TIMEOUT, SEGMENT_LENGTH
from .engine import EngineHandle
from .formatting import print_banner, print_input, print_saved_clip, print_summary
from .logging import configure_logging
from .models import MediaBlob
from .orchestrator import CutOrchestrator
from .session import CutSession
from .utils import check_dependencies


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Split a video into fixed-length clips without re-encoding"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default from config)"
    )
    parser.add_argument(
        "--no-log-file",
        dest="file_logging",
        action="store_false",
        help="Only log to the console"
    )
    parser.add_argument(
        "-s", "--segment-length",
        dest="segment_length",
        type=int,
        default=SEGMENT_LENGTH,
        help="Clip length in seconds (default: %(default)s)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=ENGINE_TIMEOUT,
        help="Seconds allowed for the segmentation command (default: no limit)"
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Video file to cut"
    )
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Directory for the clips (default: current directory)"
    )
    args = parser.parse_args(argv)
    if args.segment_length <= 0:
        parser.error("--segment-length must be a positive number of seconds")
    return args


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    configure_logging(args.log_level, file_logging=args.file_logging)

    log = logging.getLogger("clipcut")
    print_banner(__version__)

    if not args.input.is_file():
        log.error("Input %s does not exist", args.input)
        return 1

    if not check_dependencies():
        log.error("Missing required dependencies")
        return 1

    with EngineHandle() as engine:
        orchestrator = CutOrchestrator(engine, timeout=args.timeout)
        session = CutSession(engine, orchestrator, segment_length=args.segment_length)
        if not session.load_engine():
            return 1

        blob = MediaBlob.from_path(args.input)
        session.select_file(blob)
        print_input(args.input.resolve(), blob.size)

        try:
            artifacts = session.cut()
        except KeyboardInterrupt:
            log.warning("Cut interrupted by user")
            return 130

        if artifacts is None:
            return 1

        for artifact in artifacts:
            target = artifact.save(args.output)
            print_saved_clip(target, artifact.size_bytes)
        print_summary(len(artifacts), args.output.resolve())
    return 0


if __name__ == "__main__":
    sys.exit(main())
