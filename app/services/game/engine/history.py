"""Move history with a cursor for replay and undo.

Entries are immutable; the cursor and the browsing flag are the only mutable
parts. History is linear: recording after the cursor has moved back discards
every entry beyond it.
"""

import logging

from app.schemas.game_engine import BoardSnapshot, CapturedSnapshot, HistoryEntry, MoveDescriptor

logger = logging.getLogger(__name__)

INITIAL_INDEX = -1


class MoveHistory:
    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self.current_index = INITIAL_INDEX
        self.browsing = False

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    @property
    def last_index(self) -> int:
        return len(self._entries) - 1

    @property
    def moves(self) -> list[MoveDescriptor]:
        return [entry.move for entry in self._entries]

    def clear(self) -> None:
        self._entries = []
        self.current_index = INITIAL_INDEX
        self.browsing = False

    def contains(self, index: int) -> bool:
        """Whether `index` is a valid replay target (-1 included)."""
        return INITIAL_INDEX <= index <= self.last_index

    def record(
        self, move: MoveDescriptor, board: BoardSnapshot, captured: CapturedSnapshot
    ) -> HistoryEntry:
        """Append a move with the position right after it.

        Entries after the cursor are dropped first, so no entry beyond the
        cursor survives a new record.
        """
        if self.current_index < self.last_index:
            dropped = self.last_index - self.current_index
            del self._entries[self.current_index + 1 :]
            logger.info(
                "History truncated: %d entries after index %d dropped",
                dropped,
                self.current_index,
            )

        entry = HistoryEntry(move=move, board=board, captured_pieces=captured)
        self._entries.append(entry)
        self.current_index = self.last_index
        self.browsing = False
        return entry
