from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

V = TypeVar("V")


class VoteBuffer(Generic[V]):
    """Fixed-size slot buffer collecting one vote per slot for a single round.

    Casting into an occupied slot overwrites it, so a voter never counts twice
    toward completion. The buffer clears itself when it hands out a batch.
    """

    def __init__(self, size: int = 0):
        self._slots: List[Optional[V]] = [None] * size

    @property
    def size(self) -> int:
        return len(self._slots)

    @property
    def filled(self) -> int:
        return sum(1 for v in self._slots if v is not None)

    def pending(self) -> List[int]:
        """Slots still waiting for a vote."""
        return [i for i, v in enumerate(self._slots) if v is None]

    def reset(self, size: int) -> None:
        self._slots = [None] * size

    def clear(self) -> None:
        self.reset(self.size)

    def cast(self, slot: int, vote: V) -> Optional[List[V]]:
        """Store *vote* in *slot*; return the ordered batch once every slot is filled."""
        self._slots[slot] = vote
        if not self._slots or any(v is None for v in self._slots):
            return None
        batch: List[V] = list(self._slots)  # type: ignore[arg-type]
        self.clear()
        return batch


__all__ = ["VoteBuffer"]
