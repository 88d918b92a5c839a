"""Tests for snapshot undo/redo."""

from landsub.core.editor.history import HistoryManager
from landsub.core.site.scene import Lot, SceneState


def _scene():
    scene = SceneState()
    scene.boundary = [(0, 0), (10, 0), (10, 10)]
    scene.boundary_closed = True
    return scene


class TestHistoryManager:
    def test_undo_restores_pre_change_state(self):
        scene = _scene()
        history = HistoryManager(scene)
        history.push()
        scene.lots.append(Lot("L001-01", [(0, 0), (1, 0), (1, 1)]))
        assert history.undo()
        assert scene.lots == []

    def test_redo_reapplies(self):
        scene = _scene()
        history = HistoryManager(scene)
        history.push()
        scene.boundary = [(0, 0), (20, 0), (20, 20)]
        history.undo()
        assert history.redo()
        assert scene.boundary == [(0, 0), (20, 0), (20, 20)]

    def test_push_clears_redo(self):
        scene = _scene()
        history = HistoryManager(scene)
        history.push()
        scene.boundary_closed = False
        history.undo()
        assert history.can_redo
        history.push()
        assert not history.can_redo

    def test_empty_stacks(self):
        history = HistoryManager(_scene())
        assert not history.undo()
        assert not history.redo()
        assert history.depth == (0, 0)

    def test_snapshots_are_independent_copies(self):
        scene = _scene()
        scene.lots.append(Lot("L001-01", [(0, 0), (1, 0), (1, 1)]))
        history = HistoryManager(scene)
        history.push()
        scene.lots[0].polygon[0] = (5, 5)
        history.undo()
        assert scene.lots[0].polygon[0] == (0, 0)

    def test_current_path_not_part_of_history(self):
        scene = _scene()
        history = HistoryManager(scene)
        history.push()
        scene.current = [(1, 1), (2, 2)]
        history.undo()
        assert scene.current == [(1, 1), (2, 2)]

    def test_limit(self):
        scene = _scene()
        history = HistoryManager(scene, limit=2)
        for _ in range(5):
            history.push()
        assert history.depth == (2, 0)

    def test_multiple_undo_redo(self):
        scene = _scene()
        history = HistoryManager(scene)
        for i in range(3):
            history.push()
            scene.lots.append(Lot(f"L001-0{i + 1}", [(i, 0), (i + 1, 0), (i, 1)]))
        history.undo()
        history.undo()
        assert len(scene.lots) == 1
        history.redo()
        assert len(scene.lots) == 2
        assert history.depth == (2, 1)
