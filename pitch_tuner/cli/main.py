"""Main entry point for the Pitch Tuner CLI."""

import sys
import time
import argparse
from typing import List, Optional

from ..core.config import ConfigManager
from ..core.factory import ComponentFactory
from ..core.scheduler import FrameScheduler
from ..errors import CaptureUnavailable, UnknownTuning
from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import Mode, SessionState
from ..tunings import TUNING_PRESETS, get_tuning

logger = get_logger(__name__)


def format_state(state: SessionState) -> str:
    """One status line for the terminal."""
    if not state.note_name:
        return f"[{state.mode.value:6}] volume {state.volume:5.1f}  listening..."

    target = state.closest_string or state.selected_string
    target_text = f"{target} ({target.frequency_hz:.2f}Hz)" if target else "-"
    return (
        f"[{state.mode.value:6}] {state.frequency:7.1f}Hz  {state.note_name:4} "
        f"target {target_text}  {state.deviation:+4d} cents  volume {state.volume:5.1f}"
    )


def _print_changes(session, last: List[str]) -> None:
    line = format_state(session.state)
    if not last or line != last[-1]:
        print(line)
        last.append(line)


def run_listen(args, factory: ComponentFactory) -> int:
    capture_options = {}
    if args.device is not None:
        capture_options["device_id"] = args.device

    scheduler = FrameScheduler()
    session = factory.create_session(
        capture=factory.create_live_capture(**capture_options),
        scheduler=scheduler,
        tuning=args.tuning,
    )
    try:
        session.start_listening()
    except CaptureUnavailable as e:
        print(f"Cannot access the microphone: {e}", file=sys.stderr)
        return 1

    print(f"Tuning: {session.state.tuning.name}. Press Ctrl+C to stop.")
    printed: List[str] = []
    deadline = time.monotonic() + args.duration if args.duration else None
    try:
        while session.is_listening:
            if deadline is not None and time.monotonic() >= deadline:
                break
            scheduler.run(duration=0.25)
            _print_changes(session, printed)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop_listening()
    return 0


def run_analyze(args, factory: ComponentFactory) -> int:
    scheduler = FrameScheduler()
    try:
        capture = factory.create_file_capture(args.file, hop_size=args.hop)
    except CaptureUnavailable as e:
        print(str(e), file=sys.stderr)
        return 1

    session = factory.create_session(capture=capture, scheduler=scheduler, tuning=args.tuning)
    if args.string:
        pinned = session.state.tuning.find_string(args.string)
        if pinned is None:
            print(f"No string '{args.string}' in {session.state.tuning.name}", file=sys.stderr)
            return 1
        session.set_mode(Mode.MANUAL)
        session.set_selected_string(pinned)

    try:
        session.start_listening()
    except CaptureUnavailable as e:
        print(str(e), file=sys.stderr)
        return 1

    printed: List[str] = []
    # Files are analysed as fast as the frames can be processed
    while session.is_listening and not session.stream.exhausted:
        scheduler.run_pending()
        _print_changes(session, printed)
    session.stop_listening()
    return 0


def run_tone(args, factory: ComponentFactory) -> int:
    tuning = get_tuning(args.tuning)
    string = tuning.find_string(args.string)
    if string is None:
        print(f"No string '{args.string}' in {tuning.name}", file=sys.stderr)
        return 1

    scheduler = FrameScheduler()
    session = factory.create_session(
        capture=None,
        scheduler=scheduler,
        tone_output=factory.create_tone_output(),
        tuning=tuning,
    )
    session.play_reference_tone(string, args.duration_ms)
    print(f"Playing {string} ({string.frequency_hz}Hz)")
    scheduler.run(until=lambda: not session.reference_tone.is_playing)
    return 0


def run_presets(_args, _factory: ComponentFactory) -> int:
    for preset in TUNING_PRESETS:
        strings = " ".join(str(s) for s in preset.strings)
        print(f"{preset.key:16} {preset.name:16} {strings}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pitch Tuner - Instrument Tuner")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config-dir", default=None, help="Configuration directory (default: ~/.config/pitch_tuner)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    listen_parser = subparsers.add_parser("listen", help="Tune from the microphone")
    listen_parser.add_argument("--tuning", default="standard", help="Tuning preset key")
    listen_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    listen_parser.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )

    analyze_parser = subparsers.add_parser("analyze", help="Run the tuner over an audio file")
    analyze_parser.add_argument("file", help="Path to a WAV file")
    analyze_parser.add_argument("--tuning", default="standard", help="Tuning preset key")
    analyze_parser.add_argument(
        "--string", default=None, help="Compare against this string only (e.g. 'A2')"
    )
    analyze_parser.add_argument(
        "--hop", type=int, default=None, help="Samples between frames (default: frame size)"
    )

    tone_parser = subparsers.add_parser("tone", help="Play a reference tone")
    tone_parser.add_argument("string", help="String to play (e.g. 'A2' or 'A')")
    tone_parser.add_argument("--tuning", default="standard", help="Tuning preset key")
    tone_parser.add_argument(
        "--duration-ms", type=float, default=None, help="Tone length in milliseconds"
    )

    subparsers.add_parser("presets", help="List tuning presets")
    return parser


COMMANDS = {
    "listen": run_listen,
    "analyze": run_analyze,
    "tone": run_tone,
    "presets": run_presets,
}


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    setup_logging(level="DEBUG" if parsed_args.debug else None)

    handler = COMMANDS.get(parsed_args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        factory = ComponentFactory(ConfigManager(parsed_args.config_dir))
        return handler(parsed_args, factory)
    except UnknownTuning as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
