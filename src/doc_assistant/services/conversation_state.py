"""In-memory conversation history."""

import threading
from collections import deque
from typing import Deque, Iterable, List

from doc_assistant.models.conversation import ConversationTurn


class ConversationHistory:
    """
    Bounded FIFO of conversation turns.

    Appending beyond ``capacity`` evicts the oldest turns. All operations take
    a lock, so a user/assistant pair committed with :meth:`extend` is never
    interleaved with another writer's turns. Nothing is persisted.
    """

    def __init__(self, capacity: int = 20):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._turns: Deque[ConversationTurn] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, turn: ConversationTurn) -> None:
        with self._lock:
            self._turns.append(turn)

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        """Append several turns as one atomic commit."""
        turns = list(turns)
        with self._lock:
            self._turns.extend(turns)

    def recent(self, n: int) -> List[ConversationTurn]:
        """Return the last ``n`` turns, oldest first."""
        if n <= 0:
            return []
        with self._lock:
            return list(self._turns)[-n:]

    def clear(self) -> None:
        with self._lock:
            self._turns.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)
