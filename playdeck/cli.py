"""Command line player: queue files, poll the session until the playlist runs out."""

import argparse
import logging
import os
import sys
import time

from playdeck import log_config
from playdeck.engine import PlaybackEngine
from playdeck.errors import PlayerError
from playdeck.formats import is_supported_file, supported_extensions
from playdeck.midi_output import MidiOutput
from playdeck.session import Session
from playdeck.settings import Settings
from playdeck.version import __version__

log = logging.getLogger("playdeck.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playdeck",
        description="Play MIDI files (%s) as a playlist." % ", ".join(supported_extensions()),
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="track files to queue, in order")
    parser.add_argument("--single", action="store_true", help="play only the first file, no playlist")
    parser.add_argument("--shuffle", action="store_true", help="pick the next track at random")
    parser.add_argument("--volume", type=float, help="volume 0.0-1.0 (saved for next time)")
    parser.add_argument("--port", help="MIDI output port name (default: backend default)")
    parser.add_argument("--settings-dir", default="", help="directory holding settings.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def filter_tracks(paths: list[str]) -> list[str]:
    """Keep existing files with a supported extension; warn about the rest."""
    tracks = []
    for path in paths:
        if not os.path.isfile(path):
            log.warning("Skipping %s: not a file", path)
        elif not is_supported_file(path):
            log.warning("Skipping %s: unsupported format", path)
        else:
            tracks.append(path)
    return tracks


def run_single(engine: PlaybackEngine, path: str, poll_interval: float) -> None:
    engine.play_track(path)
    print(f"Playing: {path}")
    while engine.is_playing():
        time.sleep(poll_interval)


def skip_failed(session: Session) -> bool:
    """After a track failed to open, move on to the next one that does. False when none is left."""
    for _ in range(len(session.playlist)):
        if session.last_error is None or session.playlist.current_index is None:
            break
        if session.next():
            return True
    return False


def run_session(session: Session, poll_interval: float) -> None:
    last_track = None
    while session.active or skip_failed(session):
        status = session.poll()
        if status.track != last_track and session.active:
            print(f"Playing: {status.track}")
            last_track = status.track
        time.sleep(poll_interval)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log_config.setup_logging(verbose=args.verbose)

    settings = Settings(args.settings_dir)
    log.debug(settings.location_description())
    if args.volume is not None:
        settings.volume = max(0.0, min(1.0, args.volume))
        settings.save()
    if args.shuffle:
        settings.shuffle = True

    tracks = filter_tracks(args.paths)
    if not tracks:
        print("Error: no playable files given", file=sys.stderr)
        return 1

    try:
        output = MidiOutput(port_name=args.port or settings.output_port)
    except (OSError, ImportError) as e:
        # mido raises ImportError when no port backend (python-rtmidi) is installed
        log.exception("Cannot open MIDI output")
        print(f"Error: cannot open MIDI output: {e}", file=sys.stderr)
        if log_config.LOG_FILE_PATH:
            print(f"Details in {log_config.LOG_FILE_PATH}", file=sys.stderr)
        return 1

    engine = PlaybackEngine(output, volume=settings.volume)
    try:
        if args.single:
            run_single(engine, tracks[0], settings.poll_interval)
        else:
            session = Session(engine, settings=settings)
            session.add_tracks(tracks)
            run_session(session, settings.poll_interval)
            if session.last_error:
                print(f"Error: {session.last_error}", file=sys.stderr)
    except KeyboardInterrupt:
        log.info("Interrupted")
    except PlayerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        engine.close()
    return 0
