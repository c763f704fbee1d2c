"""Playlist state: ordered track paths with current and selected index (no UI)."""

import enum
import random


class Direction(enum.Enum):
    UP = -1
    DOWN = 1


class AdvanceMode(enum.Enum):
    SEQUENTIAL = "sequential"
    SHUFFLE = "shuffle"


class Playlist:
    """Mutable playlist with current index for playback.

    The current index is None until something is selected for playback. It is
    kept pointing at the intended track across remove/move operations. The
    selected index is the UI's cursor (target of remove/move) and is
    maintained separately.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._items: list[str] = []
        self._index: int | None = None
        self._selected: int | None = None
        self._rng = rng or random.Random()

    def items(self) -> list[str]:
        return list(self._items)

    def append(self, track: str) -> None:
        self._items.append(track)

    def extend(self, tracks) -> None:
        for track in tracks:
            self.append(track)

    def clear(self) -> None:
        self._items.clear()
        self._index = None
        self._selected = None

    @property
    def current_index(self) -> int | None:
        return self._index

    @property
    def selected_index(self) -> int | None:
        return self._selected

    def set_current(self, index: int | None) -> bool:
        """Make index the current item (None to unset). Returns False if out of range."""
        if index is not None and not 0 <= index < len(self._items):
            return False
        self._index = index
        return True

    def select(self, index: int | None) -> bool:
        if index is not None and not 0 <= index < len(self._items):
            return False
        self._selected = index
        return True

    def current_item(self) -> str | None:
        if self._index is not None and 0 <= self._index < len(self._items):
            return self._items[self._index]
        return None

    def remove_at(self, index: int) -> bool:
        """Remove the item at index. Returns False if index is out of range.

        Removing the current item leaves the index value alone so that it
        refers to the following track, except at the tail (moves back one)
        or when the list becomes empty (unset).
        """
        n = len(self._items)
        if not 0 <= index < n:
            return False
        current = self._index
        if current is not None:
            if index == current:
                if n == 1:
                    self._index = None
                elif current == n - 1:
                    self._index = current - 1
            elif index < current:
                self._index = current - 1
        self._items.pop(index)
        self._selected = self._selection_after_remove(index)
        return True

    def _selection_after_remove(self, removed: int) -> int | None:
        selected = self._selected
        if selected is None:
            return None
        n = len(self._items)
        if selected == removed:
            if n == 0:
                return None
            return removed if removed < n else n - 1
        if selected > removed:
            return selected - 1
        return selected

    def move_adjacent(self, index: int, direction: Direction) -> bool:
        """Swap item with its neighbour above/below. Returns False at the boundary."""
        other = index + direction.value
        n = len(self._items)
        if not 0 <= index < n or not 0 <= other < n:
            return False
        self._items[index], self._items[other] = self._items[other], self._items[index]
        if self._index == index:
            self._index = other
        elif self._index == other:
            self._index = index
        if self._selected == index:
            self._selected = other
        elif self._selected == other:
            self._selected = index
        return True

    def move_up(self, index: int) -> bool:
        return self.move_adjacent(index, Direction.UP)

    def move_down(self, index: int) -> bool:
        return self.move_adjacent(index, Direction.DOWN)

    def advance(self, mode: AdvanceMode = AdvanceMode.SEQUENTIAL) -> str | None:
        """Move to the next item per mode. Returns the new current item, or None when exhausted."""
        if mode is AdvanceMode.SHUFFLE:
            self._index = self._shuffle_index()
        else:
            self._index = self._sequential_index()
        return self.current_item()

    def _sequential_index(self) -> int | None:
        n = len(self._items)
        if n == 0:
            return None
        if self._index is None:
            return 0
        if self._index + 1 < n:
            return self._index + 1
        # End of playlist: no wraparound
        return None

    def _shuffle_index(self) -> int | None:
        n = len(self._items)
        if n == 0:
            return None
        if n == 1:
            return 0
        choice = self._rng.randrange(n)
        while choice == self._index:
            choice = self._rng.randrange(n)
        return choice

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> str:
        return self._items[index]
