"""Shared fakes: an in-memory output and a manually advanced clock."""

import pytest

from playdeck.engine import PlaybackEngine


class FakeSource:
    def __init__(self, track, duration):
        self.track = track
        self.duration = duration
        self.skipped = 0.0

    def skip(self, seconds):
        self.skipped = seconds
        return self


class FakeOutput:
    """Output that never makes a sound; finish() simulates the track running out."""

    def __init__(self, durations=None, broken=()):
        self.durations = durations or {}
        self.broken = set(broken)
        self.queue = []
        self.paused = False
        self.volume = 1.0
        self.opened = []
        self.closed = False

    def open(self, track):
        self.opened.append(track)
        if track in self.broken:
            raise OSError(f'cannot decode {track}')
        return FakeSource(track, self.durations.get(track))

    def append(self, source):
        self.queue.append(source)

    def play(self):
        self.paused = False

    def pause(self):
        self.paused = True

    def stop(self):
        self.queue.clear()

    def is_empty(self):
        return not self.queue

    def is_paused(self):
        return self.paused

    def set_volume(self, volume):
        self.volume = volume

    def get_volume(self):
        return self.volume

    def close(self):
        self.closed = True

    def finish(self):
        self.queue.clear()


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def output():
    return FakeOutput(durations={'a.mid': 10.0, 'b.mid': 20.0}, broken={'bad.mid'})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(output, clock):
    return PlaybackEngine(output, clock=clock)
