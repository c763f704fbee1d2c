"""Session glue: feeds playlist items to the engine and auto-advances on finish."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from playdeck.engine import PlaybackEngine, PlaybackState
from playdeck.errors import PlayerError
from playdeck.playlist import AdvanceMode, Direction, Playlist
from playdeck.settings import Settings

log = logging.getLogger(__name__)


@dataclass
class PlaybackStatus:
    track: str | None
    index: int | None
    position: float
    duration: float | None
    playing: bool


class Session:
    """Controller behind the player UI. Call poll() on a steady cadence (Settings.poll_interval)."""

    def __init__(
        self,
        engine: PlaybackEngine,
        playlist: Playlist | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.engine = engine
        self.playlist = playlist if playlist is not None else Playlist()
        self.settings = settings
        self.shuffle = settings.shuffle if settings else False
        # True while we expect playback to continue; gates auto-advance.
        self.active = False
        self.last_error: PlayerError | None = None
        if settings:
            engine.set_volume(settings.volume)

    @property
    def mode(self) -> AdvanceMode:
        return AdvanceMode.SHUFFLE if self.shuffle else AdvanceMode.SEQUENTIAL

    def add_tracks(self, paths: Iterable[str]) -> int:
        """Append paths. Starts the first item if nothing was selected yet. Returns count added."""
        before = len(self.playlist)
        self.playlist.extend(paths)
        added = len(self.playlist) - before
        if added and self.playlist.current_index is None:
            self.play_index(0)
        return added

    def play_index(self, index: int) -> bool:
        if not self.playlist.set_current(index):
            return False
        track = self.playlist[index]
        try:
            self.engine.play_at_index(track, index)
        except PlayerError as e:
            log.warning("Cannot play %s: %s", track, e)
            self.last_error = e
            self.active = False
            return False
        self.last_error = None
        self.active = True
        log.info("Playing %d/%d: %s", index + 1, len(self.playlist), track)
        return True

    def play(self) -> bool:
        """Resume if paused, otherwise (re)start the current item."""
        if self.engine.state is PlaybackState.PAUSED:
            self.engine.resume()
            self.active = True
            return True
        index = self.playlist.current_index
        if index is None:
            return self.next()
        return self.play_index(index)

    def pause(self) -> None:
        self.engine.pause()
        self.active = False

    def toggle_pause(self) -> None:
        if self.engine.is_playing():
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        self.engine.stop()
        self.active = False

    def next(self) -> bool:
        """Advance per the shuffle setting and play. False when the playlist is exhausted."""
        track = self.playlist.advance(self.mode)
        if track is None:
            self.engine.stop()
            self.active = False
            log.info("End of playlist")
            return False
        return self.play_index(self.playlist.current_index)

    def remove(self, index: int) -> bool:
        if index == self.playlist.current_index:
            self.stop()
        return self.playlist.remove_at(index)

    def remove_selected(self) -> bool:
        index = self.playlist.selected_index
        if index is None:
            return False
        return self.remove(index)

    def move_selected(self, direction: Direction) -> bool:
        index = self.playlist.selected_index
        if index is None:
            return False
        return self.playlist.move_adjacent(index, direction)

    def seek(self, seconds: float) -> bool:
        try:
            self.engine.seek_to(seconds)
        except PlayerError as e:
            log.warning("Seek failed: %s", e)
            self.last_error = e
            return False
        return True

    def set_volume(self, volume: float) -> None:
        self.engine.set_volume(volume)
        if self.settings:
            self.settings.volume = self.engine.get_volume()
            self.settings.save()

    def set_shuffle(self, shuffle: bool) -> None:
        self.shuffle = shuffle
        if self.settings:
            self.settings.shuffle = shuffle
            self.settings.save()

    def status(self) -> PlaybackStatus:
        return PlaybackStatus(
            track=self.engine.current_track(),
            index=self.playlist.current_index,
            position=self.engine.get_current_position(),
            duration=self.engine.get_song_duration(),
            playing=self.engine.is_playing(),
        )

    def poll(self) -> PlaybackStatus:
        """Advance to the next item if the current one finished; return a status snapshot."""
        if self.active and self.engine.check_finished():
            log.debug("Finished %s", self.engine.current_track())
            self.next()
        return self.status()

    def close(self) -> None:
        self.active = False
        self.engine.close()
