"""Output backend: play MIDI files on a mido output port from a worker thread."""

from __future__ import annotations

import collections
import logging
import threading
import time
from typing import Iterator

import mido

from playdeck.errors import OpenError

log = logging.getLogger(__name__)

DEFAULT_TEMPO = 500_000  # microseconds per beat (120 bpm)

# Messages that change what later notes sound like; kept when seeking past them.
_STATE_MESSAGES = frozenset({
    'program_change', 'control_change', 'pitchwheel', 'aftertouch', 'sysex',
})

TimedEvent = tuple[float, mido.Message]


def _timed_events(mid: mido.MidiFile) -> list[TimedEvent]:
    """Flatten all tracks into (delay_seconds, message) in playback order."""
    tempo = DEFAULT_TEMPO
    events: list[TimedEvent] = []
    for msg in mido.merge_tracks(mid.tracks):
        # Delta uses the tempo in effect before this message
        delay = mido.tick2second(msg.time, mid.ticks_per_beat, tempo)
        if msg.type == 'set_tempo':
            tempo = msg.tempo
        events.append((delay, msg))
    return events


class MidiSource:
    """A MIDI file decoded into timed events, ready to queue on a MidiOutput."""

    def __init__(self, path: str) -> None:
        try:
            mid = mido.MidiFile(path)
        except (OSError, EOFError, KeyError, ValueError) as e:
            raise OpenError(path, str(e)) from e
        self.path = path
        self._events = _timed_events(mid)
        self.duration: float | None = sum(delay for delay, _ in self._events)

    def skip(self, seconds: float) -> MidiSource:
        """Drop everything before seconds by walking from the start.

        Notes in the skipped span are discarded; program/controller changes are
        kept (with no delay) so the remainder sounds right.
        """
        remaining = max(0.0, seconds)
        kept: list[TimedEvent] = []
        pos = 0
        while pos < len(self._events):
            delay, msg = self._events[pos]
            if delay >= remaining:
                break
            remaining -= delay
            if not msg.is_meta and msg.type in _STATE_MESSAGES:
                kept.append((0.0, msg))
            pos += 1
        if pos < len(self._events):
            delay, msg = self._events[pos]
            kept.append((delay - remaining, msg))
            kept.extend(self._events[pos + 1:])
        self._events = kept
        return self

    def events(self) -> Iterator[TimedEvent]:
        return iter(self._events)

    def __repr__(self) -> str:
        return f'MidiSource({self.path!r})'


class MidiOutput:
    """Queue of MidiSources played in order on one port.

    The head of the queue stays queued while it plays, so is_empty() turns
    True only once the last source has finished or stop() dropped the queue.
    Volume scales note-on velocity.
    """

    def __init__(self, port: mido.ports.BaseOutput | None = None, port_name: str | None = None) -> None:
        self._port = port if port is not None else mido.open_output(port_name)
        self._cond = threading.Condition()
        self._queue: collections.deque[MidiSource] = collections.deque()
        self._paused = False
        self._volume = 1.0
        # Bumped by stop(); the worker abandons a source when it changes.
        self._generation = 0
        self._closed = False
        self._thread = threading.Thread(target=self._run, name='playdeck-midi', daemon=True)
        self._thread.start()
        log.info('MIDI output on %s', getattr(self._port, 'name', '?'))

    def open(self, track: str) -> MidiSource:
        return MidiSource(track)

    def append(self, source: MidiSource) -> None:
        with self._cond:
            self._queue.append(source)
            self._cond.notify_all()

    def play(self) -> None:
        with self._cond:
            self._paused = False
            self._cond.notify_all()

    def pause(self) -> None:
        with self._cond:
            self._paused = True
            self._cond.notify_all()
        self._port.panic()

    def stop(self) -> None:
        with self._cond:
            self._generation += 1
            self._queue.clear()
            self._cond.notify_all()
        self._port.reset()

    def is_empty(self) -> bool:
        with self._cond:
            return not self._queue

    def is_paused(self) -> bool:
        with self._cond:
            return self._paused

    def set_volume(self, volume: float) -> None:
        with self._cond:
            self._volume = max(0.0, min(1.0, float(volume)))

    def get_volume(self) -> float:
        with self._cond:
            return self._volume

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._generation += 1
            self._queue.clear()
            self._cond.notify_all()
        self._thread.join(timeout=1.0)
        self._port.reset()
        self._port.close()

    # --- worker ---

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._queue and not self._closed:
                    self._cond.wait()
                if self._closed:
                    return
                source = self._queue[0]
                generation = self._generation
            try:
                self._play_source(source, generation)
            except (OSError, ValueError):
                log.exception('MIDI output failed while playing %s', source.path)
            with self._cond:
                if generation == self._generation and self._queue and self._queue[0] is source:
                    self._queue.popleft()
                    self._cond.notify_all()

    def _play_source(self, source: MidiSource, generation: int) -> None:
        for delay, msg in source.events():
            if not self._wait(delay, generation):
                return
            if msg.is_meta:
                continue
            self._send(msg, generation)

    def _wait(self, seconds: float, generation: int) -> bool:
        """Sleep for seconds of unpaused time. False if stopped meanwhile."""
        remaining = seconds
        with self._cond:
            while True:
                if generation != self._generation or self._closed:
                    return False
                if self._paused:
                    self._cond.wait()
                    continue
                if remaining <= 0:
                    return True
                start = time.perf_counter()
                self._cond.wait(remaining)
                remaining -= time.perf_counter() - start

    def _send(self, msg: mido.Message, generation: int) -> None:
        with self._cond:
            if generation != self._generation:
                return
            volume = self._volume
        if msg.type == 'note_on' and volume < 1.0:
            msg = msg.copy(velocity=round(msg.velocity * volume))
        self._port.send(msg)
