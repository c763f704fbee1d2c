"""Playback engine and playlist navigation for a single-track player."""

from playdeck.engine import PlaybackEngine, PlaybackState
from playdeck.errors import LockFailure, NoActiveTrackError, OpenError, PlayerError
from playdeck.playlist import AdvanceMode, Direction, Playlist
from playdeck.session import PlaybackStatus, Session
from playdeck.settings import Settings

__all__ = [
    'AdvanceMode',
    'Direction',
    'LockFailure',
    'NoActiveTrackError',
    'OpenError',
    'PlaybackEngine',
    'PlaybackState',
    'PlaybackStatus',
    'Playlist',
    'PlayerError',
    'Session',
    'Settings',
]
