"""
State Store

Single source of truth for subject liveness state.
"""

from __future__ import annotations

import asyncio
from typing import Callable, TypeVar

from heartwatch.monitor.models import SubjectState

R = TypeVar("R")


class StateStore:
    """
    Maps subject names to their SubjectState.

    Every operation runs under one lock so readers never observe a subject
    mid-update. Callbacks passed to `upsert` and `for_each` run while the lock
    is held and must not perform I/O.
    """

    def __init__(self) -> None:
        self._states: dict[str, SubjectState] = {}
        self._lock = asyncio.Lock()

    async def upsert(
        self,
        subject: str,
        create: Callable[[], SubjectState],
        update: Callable[[SubjectState], R],
    ) -> R | None:
        """
        Create or update a subject's state.

        Args:
            subject: Subject name
            create: Builds the state for an unknown subject
            update: Mutates an existing state in place

        Returns:
            Whatever `update` returned, or None when the subject was created
        """
        async with self._lock:
            state = self._states.get(subject)
            if state is None:
                self._states[subject] = create()
                return None
            return update(state)

    async def for_each(self, fn: Callable[[SubjectState], R | None]) -> list[R]:
        """
        Apply `fn` to every state under a single lock acquisition.

        Returns:
            The non-None results of `fn`
        """
        results: list[R] = []
        async with self._lock:
            for state in self._states.values():
                result = fn(state)
                if result is not None:
                    results.append(result)
        return results

    async def snapshot(self) -> list[SubjectState]:
        """Consistent copy of every state, sorted by subject."""
        async with self._lock:
            states = [s.model_copy() for s in self._states.values()]
        states.sort(key=lambda s: s.subject)
        return states

    async def get(self, subject: str) -> SubjectState | None:
        """Copy of one subject's state."""
        async with self._lock:
            state = self._states.get(subject)
            return state.model_copy() if state else None

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, subject: object) -> bool:
        return subject in self._states
