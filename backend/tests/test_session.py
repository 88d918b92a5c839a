"""Tests for the editing session: drawing, commands and live feedback."""

import pytest

from landsub.config import Settings
from landsub.core.editor import events as ev
from landsub.core.editor.session import EditorSession
from landsub.core.errors import InvalidCommandError, UnknownEntityError
from landsub.core.geometry.kernel import area
from landsub.core.site.scene import EditMode

BOUNDARY = [(0, 0), (100, 0), (100, 60), (0, 60)]
ROAD = [(44, 0), (56, 0), (56, 60), (44, 60)]


def click(session, x, y, axis_lock=False):
    return session.handle(ev.PointerEvent(ev.PointerKind.DOWN, (x, y), axis_lock=axis_lock))


def draw(session, mode, points, width=None):
    session.handle(ev.SetMode(mode))
    for x, y in points:
        click(session, x, y)
    return session.handle(ev.CloseShape(width=width))


@pytest.fixture
def session():
    return EditorSession(Settings())


@pytest.fixture
def site(session):
    """Parcel with a public road along the bottom and one internal road."""
    draw(session, EditMode.BOUNDARY, BOUNDARY)
    session.handle(ev.SetMode(EditMode.PUBLIC_ROAD))
    click(session, 0, 0)
    click(session, 100, 0)
    draw(session, EditMode.INTERNAL_ROAD, ROAD)
    return session


class TestDrawing:
    def test_close_boundary(self, session):
        outcome = draw(session, EditMode.BOUNDARY, BOUNDARY)
        assert outcome.applied
        assert session.scene.boundary == BOUNDARY
        assert session.scene.boundary_closed
        assert session.scene.current == []

    def test_duplicate_click_ignored(self, session):
        click(session, 5, 5)
        assert not click(session, 5, 5).applied
        assert session.scene.current == [(5, 5)]

    def test_close_needs_three_points(self, session):
        click(session, 0, 0)
        click(session, 10, 0)
        assert not session.handle(ev.CloseShape()).applied
        assert not session.scene.boundary_closed

    def test_collinear_path_rejected(self, session):
        for x in (0, 10, 20):
            click(session, x, 0)
        outcome = session.handle(ev.CloseShape())
        assert not outcome.applied
        assert any(i["code"] == "ALL_COLLINEAR" for i in outcome.issues)
        assert session.scene.current == [(0, 0), (10, 0), (20, 0)]

    def test_no_clicks_after_boundary_closed(self, session):
        draw(session, EditMode.BOUNDARY, BOUNDARY)
        assert not click(session, 50, 50).applied

    def test_closed_boundary_not_replaced_by_other_path(self, site):
        site.handle(ev.SetMode(EditMode.LOT))
        for x, y in [(10, 40), (30, 40), (30, 55)]:
            click(site, x, y)
        site.handle(ev.SetMode(EditMode.BOUNDARY))
        outcome = site.handle(ev.CloseShape())
        assert not outcome.applied
        assert outcome.detail == "boundary already closed"
        assert site.scene.boundary == BOUNDARY
        assert site.scene.current == [(10, 40), (30, 40), (30, 55)]

    def test_click_merges_with_existing_vertex(self, session):
        draw(session, EditMode.BOUNDARY, BOUNDARY)
        session.handle(ev.SetMode(EditMode.LOT))
        click(session, 100.1, 59.9)
        assert session.scene.current == [(100, 60)]

    def test_axis_lock_click(self, session):
        click(session, 0, 0)
        click(session, 20, 3, axis_lock=True)
        assert session.scene.current[-1] == (20, 0)

    def test_public_road_entry_points(self, site):
        road = site.scene.public_roads[0]
        assert road.road_id == "R001"
        assert road.width == 12.0
        assert road.entry_points == [(0, 0), (100, 0)]

    def test_duplicate_entry_point_ignored(self, site):
        site.handle(ev.SetMode(EditMode.PUBLIC_ROAD))
        assert not click(site, 100.1, 0).applied
        assert len(site.scene.public_roads[0].entry_points) == 2

    def test_new_public_road(self, site):
        outcome = site.handle(ev.NewPublicRoad(width=20))
        assert outcome.detail == "R003"
        click(site, 0, 60)
        assert site.scene.public_roads[-1].entry_points == [(0, 60)]
        assert site.scene.public_roads[-1].width == 20

    def test_internal_road_width_estimated(self, site):
        road = site.scene.internal_roads[0]
        assert road.road_id == "R002"
        assert road.width is None
        assert site.feedback()["road_widths"]["R002"] == pytest.approx(12)

    def test_explicit_internal_road_width(self, site):
        draw(site, EditMode.INTERNAL_ROAD, [(10, 40), (30, 40), (30, 46), (10, 46)], width=7)
        assert site.scene.internal_roads[-1].width == 7

    def test_lot_ids_and_frontage(self, site):
        outcome = draw(site, EditMode.LOT, [(0, 0), (44, 0), (44, 30), (0, 30)])
        assert outcome.detail == "L001-01"
        lot = site.scene.lots[0]
        assert lot.front_road == "R002"
        draw(site, EditMode.LOT, [(10, 40), (30, 40), (30, 55), (10, 55)])
        assert site.scene.lots[1].lot_id == "L001-02"
        assert site.scene.lots[1].front_road is None

    def test_lot_facing_public_road(self, session):
        draw(session, EditMode.BOUNDARY, BOUNDARY)
        session.handle(ev.SetMode(EditMode.PUBLIC_ROAD))
        click(session, 0, 0)
        click(session, 100, 0)
        draw(session, EditMode.LOT, [(0, 0), (40, 0), (40, 30), (0, 30)])
        assert session.scene.lots[0].front_road == "R001"

    def test_nothing_to_close_in_select_mode(self, session):
        session.handle(ev.SetMode(EditMode.SELECT))
        assert not session.handle(ev.CloseShape()).applied


class TestUndoRedo:
    def test_smart_undo_pops_path_vertex(self, session):
        click(session, 0, 0)
        click(session, 10, 0)
        assert session.handle(ev.Undo()).applied
        assert session.scene.current == [(0, 0)]
        assert session.history.depth == (0, 0)

    def test_undo_close(self, session):
        draw(session, EditMode.BOUNDARY, BOUNDARY)
        assert session.handle(ev.Undo()).applied
        assert session.scene.boundary == []
        assert not session.scene.boundary_closed
        assert session.scene.current == BOUNDARY
        assert session.mode == EditMode.BOUNDARY
        session.handle(ev.Redo())
        assert session.scene.boundary_closed
        assert session.scene.boundary == BOUNDARY
        assert session.scene.current == []

    def test_boundary_can_be_closed_again_after_undo(self, session):
        draw(session, EditMode.BOUNDARY, BOUNDARY)
        session.handle(ev.SetMode(EditMode.LOT))
        session.handle(ev.Undo())
        assert session.mode == EditMode.BOUNDARY
        assert session.handle(ev.Undo()).detail == "path vertex removed"
        assert session.scene.current == BOUNDARY[:3]
        click(session, 0, 60)
        assert session.handle(ev.CloseShape()).applied
        assert session.scene.boundary == BOUNDARY

    def test_undo_reopen_drops_path_copy(self, site):
        site.handle(ev.ReopenBoundary())
        assert site.handle(ev.Undo(smart=False)).applied
        assert site.scene.boundary_closed
        assert site.scene.current == []

    def test_smart_undo_in_select_mode_undoes_drag(self, site):
        site.handle(ev.SetMode(EditMode.LOT))
        click(site, 10, 40)
        click(site, 20, 40)
        site.handle(ev.SetMode(EditMode.SELECT))
        site.handle(ev.PointerEvent(ev.PointerKind.DOWN, (100, 60)))
        site.handle(ev.PointerEvent(ev.PointerKind.MOVE, (100, 70)))
        site.handle(ev.PointerEvent(ev.PointerKind.UP))
        assert site.scene.boundary[2] == (100, 70)

        assert site.handle(ev.Undo()).applied
        assert site.scene.boundary[2] == (100, 60)
        assert site.scene.current == [(10, 40), (20, 40)]

        site.handle(ev.SetMode(EditMode.LOT))
        assert site.handle(ev.Undo()).detail == "path vertex removed"
        assert site.scene.current == [(10, 40)]

    def test_smart_undo_skips_path_from_other_mode(self, site):
        site.handle(ev.SetMode(EditMode.LOT))
        click(site, 10, 40)
        site.handle(ev.SetMode(EditMode.INTERNAL_ROAD))
        site.handle(ev.Undo())
        assert site.scene.internal_roads == []
        assert site.scene.current == [(10, 40)]

    def test_plain_undo_ignores_path(self, site):
        site.handle(ev.SetMode(EditMode.LOT))
        click(site, 10, 40)
        site.handle(ev.Undo(smart=False))
        assert site.scene.internal_roads == []
        assert site.scene.current == [(10, 40)]

    def test_clear_all_is_undoable(self, site):
        site.handle(ev.ClearAll())
        assert site.scene.boundary == []
        assert site.scene.public_roads == []
        site.handle(ev.Undo())
        assert site.scene.boundary == BOUNDARY
        assert len(site.scene.internal_roads) == 1

    def test_redo_clear_all_leaves_path_empty(self, site):
        site.handle(ev.ClearAll())
        site.handle(ev.Undo())
        assert site.handle(ev.Redo()).applied
        assert site.scene.boundary == []
        assert site.scene.current == []


class TestCommands:
    def test_reopen_boundary(self, site):
        site.handle(ev.SetMode(EditMode.LOT))
        assert site.handle(ev.ReopenBoundary()).applied
        assert site.mode == EditMode.BOUNDARY
        assert site.scene.current == BOUNDARY
        assert not site.scene.boundary_closed
        site.handle(ev.CloseShape())
        assert site.scene.boundary_closed

    def test_reopen_open_boundary(self, session):
        assert not session.handle(ev.ReopenBoundary()).applied

    def test_set_road_width(self, site):
        site.handle(ev.SetRoadWidth("R001", 15))
        site.handle(ev.SetRoadWidth("R002", 9))
        assert site.scene.public_roads[0].width == 15
        assert site.scene.internal_roads[0].width == 9
        site.handle(ev.SetRoadWidth("R002", None))
        assert site.scene.internal_roads[0].width is None

    def test_set_road_width_rejects_bad_values(self, site):
        assert not site.handle(ev.SetRoadWidth("R001", -3)).applied
        assert not site.handle(ev.SetRoadWidth("R001", None)).applied

    def test_unknown_road(self, site):
        with pytest.raises(UnknownEntityError):
            site.handle(ev.SetRoadWidth("R999", 5))

    def test_select_and_delete_entity(self, site):
        site.handle(ev.SelectEntity("road", "R002"))
        site.handle(ev.DeleteSelection())
        assert site.scene.internal_roads == []

    def test_select_unknown_entity(self, site):
        with pytest.raises(UnknownEntityError):
            site.handle(ev.SelectEntity("lot", "L001-99"))
        with pytest.raises(InvalidCommandError):
            site.handle(ev.SelectEntity("tree", "T1"))

    def test_mode_change_clears_selection(self, site):
        site.handle(ev.SelectEntity("road", "R002"))
        site.handle(ev.SetMode(EditMode.LOT))
        assert site.engine.selection is None

    def test_land_id(self, session):
        session.handle(ev.SetLandId("P-7"))
        draw(session, EditMode.LOT, [(0, 0), (10, 0), (10, 10)])
        assert session.scene.lots[0].lot_id == "P-7-01"
        assert not session.handle(ev.SetLandId("  ")).applied

    def test_view_scale_changes_snap_reach(self, session):
        click(session, 0, 0)
        click(session, 50, 0)
        session.handle(ev.SetView(5.0))
        click(session, 3, 30)
        click(session, 1.5, 1)
        assert session.scene.current[-1] == (0, 0)

    def test_snap_options(self, session):
        session.handle(ev.SetSnapOptions(grid_enabled=True, grid_strict=True, grid_step=5))
        click(session, 6.9, 8.1)
        assert session.scene.current == [(5, 10)]

    def test_unknown_event(self, session):
        with pytest.raises(InvalidCommandError):
            session.handle(object())


class TestScaling:
    def test_scale_scene(self, site):
        before = area(site.scene.boundary)
        site.handle(ev.ScaleScene(2.0))
        assert area(site.scene.boundary) == pytest.approx(4 * before)
        assert area(site.scene.internal_roads[0].polygon) == pytest.approx(4 * 12 * 60)
        assert site.scene.public_roads[0].entry_points == [
            pytest.approx((-50, -30)), pytest.approx((150, -30)),
        ]

    def test_scale_about_origin(self, site):
        site.handle(ev.ScaleScene(0.5, ev.ScaleAnchor.ORIGIN))
        assert site.scene.boundary[2] == pytest.approx((50, 30))

    def test_scale_about_custom_anchor(self, site):
        site.handle(ev.ScaleScene(2.0, ev.ScaleAnchor.CUSTOM, (100, 60)))
        assert site.scene.boundary[2] == pytest.approx((100, 60))
        assert site.scene.boundary[0] == pytest.approx((-100, -60))

    def test_scale_to_area(self, site):
        site.handle(ev.ScaleToArea(1500))
        assert area(site.scene.boundary) == pytest.approx(1500, abs=1e-6)

    def test_scale_to_area_without_boundary(self, session):
        assert not session.handle(ev.ScaleToArea(1500)).applied

    def test_bad_factor(self, site):
        assert not site.handle(ev.ScaleScene(0)).applied
        assert site.history.depth[0] > 0

    def test_scale_is_undoable(self, site):
        site.handle(ev.ScaleScene(3.0))
        site.handle(ev.Undo())
        assert site.scene.boundary == BOUNDARY

    def test_auto_scale_new_boundary(self, session):
        session.handle(ev.SetAutoScale(enabled=True, target_area=200))
        draw(session, EditMode.BOUNDARY, [(0, 0), (10, 0), (10, 10), (0, 10)])
        assert area(session.scene.boundary) == pytest.approx(200, abs=1e-6)

    def test_auto_scale_only_listed_modes(self, session):
        session.handle(ev.SetAutoScale(enabled=True, target_area=200))
        draw(session, EditMode.LOT, [(0, 0), (10, 0), (10, 10), (0, 10)])
        assert session.scene.lots[0].area == pytest.approx(100)


class TestSelectModeInput:
    def test_drag_boundary_vertex(self, site):
        site.handle(ev.SetMode(EditMode.SELECT))
        assert site.handle(ev.PointerEvent(ev.PointerKind.DOWN, (100, 60))).applied
        site.handle(ev.PointerEvent(ev.PointerKind.MOVE, (100, 70)))
        site.handle(ev.PointerEvent(ev.PointerKind.UP))
        assert site.scene.boundary[2] == (100, 70)
        assert not site.engine.dragging

    def test_drag_snaps_to_other_entities(self, site):
        site.handle(ev.SetMode(EditMode.SELECT))
        site.handle(ev.PointerEvent(ev.PointerKind.DOWN, (100, 60)))
        site.handle(ev.PointerEvent(ev.PointerKind.MOVE, (56.2, 60.1)))
        assert site.scene.boundary[2] == (56, 60)

    def test_click_on_nothing(self, site):
        site.handle(ev.SetMode(EditMode.SELECT))
        assert not site.handle(ev.PointerEvent(ev.PointerKind.DOWN, (20, 45))).applied
        assert site.engine.selection is None


class TestFeedback:
    def test_preview_segment(self, session):
        click(session, 0, 0)
        session.handle(ev.PointerEvent(ev.PointerKind.MOVE, (3, 4)))
        preview = session.feedback()["preview_segment"]
        assert preview["length"] == pytest.approx(5)
        assert preview["midpoint"] == pytest.approx([1.5, 2])

    def test_pointer_leave_clears_hover(self, session):
        click(session, 0, 0)
        session.handle(ev.PointerEvent(ev.PointerKind.MOVE, (3, 4)))
        session.handle(ev.PointerEvent(ev.PointerKind.LEAVE))
        assert session.feedback()["preview_segment"] is None

    def test_live_polygon(self, session):
        for p in [(0, 0), (10, 0), (10, 10)]:
            click(session, *p)
        live = session.feedback()["live_polygon"]
        assert live["area"] == pytest.approx(50)

    def test_fit_extents_margin(self, site):
        extents = site.feedback()["fit_extents"]
        assert extents == pytest.approx([-10, -6, 110, 66])

    def test_segment_labels(self, site):
        labels = [lbl for lbl in site.feedback()["segment_labels"] if lbl["owner"] == "boundary"]
        assert [lbl["length"] for lbl in labels] == pytest.approx([100, 60, 100, 60])

    def test_scene_view(self, site):
        view = site.scene_view()
        assert view["mode"] == "internalRoad"
        assert view["boundary_closed"] is True
        assert view["internal_roads"][0]["road_id"] == "R002"
        assert view["undo_depth"] == 4
        assert view["selection"] is None
