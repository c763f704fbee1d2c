"""Playback engine: transport state machine and position tracking over a swappable output."""

from __future__ import annotations

import contextlib
import enum
import logging
import threading
import time
from typing import Callable, Protocol

from playdeck.errors import LockFailure, NoActiveTrackError, OpenError

log = logging.getLogger(__name__)

# Seconds to wait for a state lock before degrading to a safe default.
LOCK_TIMEOUT = 1.0


class Source(Protocol):
    """A decoded, queueable track."""

    duration: float | None

    def skip(self, seconds: float) -> Source:
        ...


class Output(Protocol):
    """Decoder + output device the engine drives. Must be safe to call from any thread."""

    def open(self, track: str) -> Source:
        ...

    def append(self, source: Source) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def is_empty(self) -> bool:
        ...

    def is_paused(self) -> bool:
        ...

    def set_volume(self, volume: float) -> None:
        ...

    def get_volume(self) -> float:
        ...

    def close(self) -> None:
        ...


class PlaybackState(enum.Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class _Event(enum.Enum):
    PLAY = "play"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    COMPLETE = "complete"
    SEEK = "seek"
    SEEK_PAUSED = "seek_paused"
    FAIL = "fail"


_S = PlaybackState
_ALL_STATES = tuple(PlaybackState)

# (state, event) -> (new state, finished flag or None to keep it).
# Pairs missing from the table are no-ops.
_TRANSITIONS: dict[tuple[PlaybackState, _Event], tuple[PlaybackState, bool | None]] = {
    **{(s, _Event.PLAY): (_S.PLAYING, False) for s in _ALL_STATES},
    (_S.PLAYING, _Event.PAUSE): (_S.PAUSED, None),
    (_S.PAUSED, _Event.RESUME): (_S.PLAYING, None),
    (_S.STOPPED, _Event.RESUME): (_S.PLAYING, None),
    **{(s, _Event.STOP): (_S.STOPPED, True) for s in _ALL_STATES},
    **{(s, _Event.COMPLETE): (_S.STOPPED, True) for s in _ALL_STATES},
    **{(s, _Event.SEEK): (_S.PLAYING, False) for s in _ALL_STATES},
    **{(s, _Event.SEEK_PAUSED): (_S.PAUSED, False) for s in _ALL_STATES},
    **{(s, _Event.FAIL): (_S.STOPPED, None) for s in _ALL_STATES},
}


@contextlib.contextmanager
def _guard(lock: threading.Lock, what: str):
    if not lock.acquire(timeout=LOCK_TIMEOUT):
        raise LockFailure(f"Timed out waiting for {what} lock")
    try:
        yield
    finally:
        lock.release()


class PlaybackEngine:
    """Single-track player with a sticky finished flag and wall-clock position.

    Completion is not signalled; callers poll check_finished() and
    get_current_position() (about every 100 ms). Two locks guard the shared
    state: _state_lock (state, finished, active index, track, duration) and
    _clock_lock (position, last sample time). Neither is held while calling
    into the output, so callers must not assume atomicity across calls.
    """

    def __init__(
        self,
        output: Output,
        volume: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._output = output
        self._clock = clock
        self._state_lock = threading.Lock()
        self._clock_lock = threading.Lock()

        self._state = PlaybackState.STOPPED
        self._finished = False
        self._index: int | None = None
        self._track: str | None = None
        self._duration: float | None = None
        # Bumped whenever a load starts or ends; check_finished ignores sink
        # readings taken across a bump, and any taken while _loading is set.
        self._epoch = 0
        self._loading = False

        self._position = 0.0
        self._last_sample = clock()

        self.set_volume(volume)

    # --- state helpers ---

    def _apply_locked(self, event: _Event) -> bool:
        transition = _TRANSITIONS.get((self._state, event))
        if transition is None:
            return False
        new_state, finished = transition
        if new_state is not self._state:
            log.debug("%s: %s -> %s", event.value, self._state.value, new_state.value)
        self._state = new_state
        if finished is not None:
            self._finished = finished
        return True

    def _apply(self, event: _Event) -> bool:
        with _guard(self._state_lock, "state"):
            return self._apply_locked(event)

    def _reset_clock(self, position: float) -> None:
        with _guard(self._clock_lock, "clock"):
            self._position = position
            self._last_sample = self._clock()

    def _is_running(self) -> bool:
        with _guard(self._state_lock, "state"):
            if self._state is not PlaybackState.PLAYING or self._finished:
                return False
        return not self._output.is_paused() and not self._output.is_empty()

    def _open(self, track: str) -> Source:
        try:
            return self._output.open(track)
        except OpenError:
            raise
        except (OSError, ValueError, EOFError) as e:
            raise OpenError(track, str(e)) from e

    def _begin_load(self) -> None:
        with _guard(self._state_lock, "state"):
            self._epoch += 1
            self._loading = True
            self._finished = False

    def _end_load(self, event: _Event) -> None:
        with _guard(self._state_lock, "state"):
            self._epoch += 1
            self._loading = False
            self._apply_locked(event)

    def _unload(self) -> None:
        with _guard(self._state_lock, "state"):
            self._epoch += 1
            self._loading = False
            self._track = None
            self._duration = None
            self._apply_locked(_Event.FAIL)

    # --- transport ---

    def play_track(self, track: str) -> None:
        """Stop whatever is playing and start track from the beginning.

        Raises OpenError if the track cannot be opened; the engine is then
        stopped with nothing loaded.
        """
        self._begin_load()
        self._output.stop()
        self._reset_clock(0.0)
        try:
            source = self._open(track)
        except OpenError as e:
            log.warning("%s", e)
            self._unload()
            raise
        with _guard(self._state_lock, "state"):
            self._track = track
            self._duration = source.duration
        self._output.append(source)
        self._reset_clock(0.0)
        self._output.play()
        self._end_load(_Event.PLAY)
        log.debug("Playing %s (duration %s)", track, source.duration)

    def play_at_index(self, track: str, index: int) -> None:
        """Publish index as active, clear finished, then play track.

        The index is published even if opening fails; callers that need
        the old index back on failure must restore it themselves.
        """
        with _guard(self._state_lock, "state"):
            self._index = index
        with _guard(self._state_lock, "state"):
            self._finished = False
        self.play_track(track)

    def pause(self) -> None:
        if self.state is not PlaybackState.PLAYING:
            return
        self.get_current_position()
        self._output.pause()
        self._apply(_Event.PAUSE)

    def resume(self) -> None:
        with _guard(self._state_lock, "state"):
            state = self._state
            loaded = self._track is not None
        if not loaded:
            return
        if state is PlaybackState.PLAYING:
            return
        if state is PlaybackState.STOPPED and self._output.is_empty():
            return
        with _guard(self._clock_lock, "clock"):
            self._last_sample = self._clock()
        self._output.play()
        self._apply(_Event.RESUME)

    def stop(self) -> None:
        """Halt output and mark finished. Position and loaded track are kept."""
        self.get_current_position()
        self._output.stop()
        self._apply(_Event.STOP)

    def seek_to(self, position: float) -> None:
        """Jump to position (seconds) in the loaded track.

        The output cannot seek, so the track is reopened and decoded material
        up to position is discarded: cost grows with position and long jumps
        may leave an audible gap. Run it off the UI thread. Raises
        NoActiveTrackError when nothing is loaded, OpenError if reopening fails.
        """
        with _guard(self._state_lock, "state"):
            track = self._track
        if track is None:
            raise NoActiveTrackError("No track is loaded")
        position = max(0.0, float(position))
        self._reset_clock(position)

        was_paused = self.state is PlaybackState.PAUSED
        self._begin_load()
        self._output.stop()
        try:
            source = self._open(track)
        except OpenError as e:
            log.warning("Seek failed: %s", e)
            self._unload()
            raise
        source = source.skip(position)
        self._output.append(source)
        self._reset_clock(position)
        if not was_paused:
            self._output.play()
        self._end_load(_Event.SEEK_PAUSED if was_paused else _Event.SEEK)
        log.debug("Seeked %s to %.3fs", track, position)

    # --- queries ---

    def is_playing(self) -> bool:
        try:
            with _guard(self._state_lock, "state"):
                finished = self._finished
        except LockFailure as e:
            log.warning("%s; reporting not playing", e)
            return False
        return not self._output.is_paused() and not self._output.is_empty() and not finished

    def check_finished(self) -> bool:
        """True once the track ran out or was stopped. Sticky until the next play/seek."""
        try:
            with _guard(self._state_lock, "state"):
                epoch = self._epoch
            empty = self._output.is_empty()
            paused = self._output.is_paused()
            with _guard(self._state_lock, "state"):
                if (
                    empty
                    and not paused
                    and not self._finished
                    and not self._loading
                    and epoch == self._epoch
                ):
                    self._apply_locked(_Event.COMPLETE)
                    log.debug("Track finished: %s", self._track)
                return self._finished
        except LockFailure as e:
            log.warning("%s; reporting not finished", e)
            return False

    def get_current_position(self) -> float:
        """Elapsed seconds: frozen while paused, extrapolated from the clock while playing."""
        try:
            running = self._is_running()
            with _guard(self._clock_lock, "clock"):
                if running:
                    now = self._clock()
                    self._position += max(0.0, now - self._last_sample)
                    self._last_sample = now
                return self._position
        except LockFailure as e:
            log.warning("%s; reporting position 0", e)
            return 0.0

    def get_song_duration(self) -> float | None:
        try:
            with _guard(self._state_lock, "state"):
                return self._duration
        except LockFailure as e:
            log.warning("%s; duration unknown", e)
            return None

    def current_index(self) -> int | None:
        try:
            with _guard(self._state_lock, "state"):
                return self._index
        except LockFailure as e:
            log.warning("%s; no index", e)
            return None

    def current_track(self) -> str | None:
        try:
            with _guard(self._state_lock, "state"):
                return self._track
        except LockFailure as e:
            log.warning("%s; no track", e)
            return None

    @property
    def state(self) -> PlaybackState:
        try:
            with _guard(self._state_lock, "state"):
                return self._state
        except LockFailure as e:
            log.warning("%s; reporting stopped", e)
            return PlaybackState.STOPPED

    # --- volume ---

    def set_volume(self, volume: float) -> None:
        volume = max(0.0, min(1.0, float(volume)))
        self._output.set_volume(volume)

    def get_volume(self) -> float:
        return self._output.get_volume()

    def close(self) -> None:
        self._output.stop()
        self._output.close()
