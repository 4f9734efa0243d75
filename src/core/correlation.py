"""Source -> destination message id correlation (in-memory)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Optional


class MessageCorrelationStore:
    """Map a source message id to the destination message it produced.

    Entries live for the process lifetime. When ``max_entries`` is set the
    least recently used entry is evicted once the bound is exceeded; lookups
    count as use so active conversations keep their mappings.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        if max_entries is not None and max_entries <= 0:
            max_entries = None
        self._max_entries = max_entries
        self._entries: "OrderedDict[int, int]" = OrderedDict()

    def record(self, source_message_id: int, destination_message_id: int) -> None:
        self._entries[source_message_id] = destination_message_id
        self._entries.move_to_end(source_message_id)
        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def lookup(self, source_message_id: int) -> Optional[int]:
        destination_id = self._entries.get(source_message_id)
        if destination_id is not None:
            self._entries.move_to_end(source_message_id)
        return destination_id

    def __contains__(self, source_message_id: object) -> bool:
        return source_message_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
