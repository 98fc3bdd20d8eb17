"""Bounded, per-conversation chat memory."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 20


@dataclass(frozen=True)
class Turn:
    role: str
    content: str

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationMemory:
    """Sliding window of the most recent turns for one conversation."""

    def __init__(self, conversation_id: str, max_turns: int = DEFAULT_MAX_TURNS) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be a positive integer")
        self.conversation_id = conversation_id
        self.max_turns = max_turns
        self.updated_at = time.time()
        self._turns: List[Turn] = []
        self._lock = threading.Lock()

    @property
    def turns(self) -> Tuple[Turn, ...]:
        with self._lock:
            return tuple(self._turns)

    def append(self, *turns: Turn) -> None:
        """Append turns in order, then drop the oldest beyond ``max_turns``."""
        with self._lock:
            self._turns.extend(turns)
            overflow = len(self._turns) - self.max_turns
            if overflow > 0:
                del self._turns[:overflow]
                logger.debug(
                    "Evicted %d turn(s) from conversation %s", overflow, self.conversation_id
                )
            self.updated_at = time.time()

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)


class ConversationMemoryStore:
    """Keyed collection of :class:`ConversationMemory` objects.

    The store lock only guards the id -> memory registry.  Appends take the
    lock of the individual conversation, so traffic on different ids never
    serialises.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS) -> None:
        self.max_turns = max_turns
        self._memories: Dict[str, ConversationMemory] = {}
        self._lock = threading.Lock()

    def get(self, conversation_id: str) -> ConversationMemory:
        """Return the memory for ``conversation_id``, creating it on first use."""
        with self._lock:
            memory = self._memories.get(conversation_id)
            if memory is None:
                memory = ConversationMemory(conversation_id, self.max_turns)
                self._memories[conversation_id] = memory
                logger.debug("Created memory for conversation %s", conversation_id)
            return memory

    def append(self, conversation_id: str, *turns: Turn) -> None:
        self.get(conversation_id).append(*turns)

    def history(self, conversation_id: str) -> List[Turn]:
        return list(self.get(conversation_id).turns)

    def snapshot(self, conversation_id: str) -> List[Turn]:
        """Like :meth:`history`, but unknown ids yield ``[]`` without being registered."""
        with self._lock:
            memory = self._memories.get(conversation_id)
        return list(memory.turns) if memory is not None else []

    def __contains__(self, conversation_id: object) -> bool:
        with self._lock:
            return conversation_id in self._memories

    def __len__(self) -> int:
        with self._lock:
            return len(self._memories)
