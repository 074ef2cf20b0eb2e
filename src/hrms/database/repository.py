from __future__ import annotations

from typing import Protocol


class SequenceRepository(Protocol):
    def next_value(self, key: str) -> int:
        raise NotImplementedError
