"""Snapshot-based undo/redo over the persistent scene."""

from __future__ import annotations

import logging

from landsub.core.site.scene import HistorySnapshot, SceneState

logger = logging.getLogger(__name__)


class HistoryManager:
    """Two snapshot stacks bound to one scene.

    Callers invoke ``push()`` before applying a change; the snapshot it
    records is the pre-change state, and any redo branch is discarded.
    """

    def __init__(self, scene: SceneState, limit: int | None = None) -> None:
        self.scene = scene
        self.limit = limit
        self._undo: list[HistorySnapshot] = []
        self._redo: list[HistorySnapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def depth(self) -> tuple[int, int]:
        return len(self._undo), len(self._redo)

    def push(self) -> None:
        self._undo.append(self.scene.snapshot())
        if self.limit is not None and len(self._undo) > self.limit:
            del self._undo[0]
        self._redo.clear()

    def undo(self) -> bool:
        if not self._undo:
            return False
        prev = self._undo.pop()
        self._redo.append(self.scene.snapshot())
        self.scene.restore(prev)
        logger.info("Undo (remaining undo=%d, redo=%d)", len(self._undo), len(self._redo))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        nxt = self._redo.pop()
        self._undo.append(self.scene.snapshot())
        self.scene.restore(nxt)
        logger.info("Redo (remaining undo=%d, redo=%d)", len(self._undo), len(self._redo))
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
