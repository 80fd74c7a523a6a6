"""
Tests for the interaction engine: tools, selection, drag and zoom.
"""
import pytest

from label_designer.core.editor import CREATE_DEFAULTS, EditorState, InteractionEngine
from label_designer.core.models import TemplateDocument, make_element


@pytest.fixture()
def doc():
    d = TemplateDocument(width_mm=100, height_mm=60)
    d.add(make_element("text", "title", x=10, y=10, width=100, height=30, z_index=1))
    d.add(make_element("price", "price", x=50, y=20, width=80, height=30, z_index=2))
    return d


@pytest.fixture()
def engine(doc):
    return InteractionEngine(doc)


def _inside(doc, elem):
    g = elem.geometry
    return (
        g.x >= 0 and g.y >= 0
        and g.x + g.width <= doc.width_px + 1e-9
        and g.y + g.height <= doc.height_px + 1e-9
    )


class TestTools:
    def test_defaults(self, engine):
        assert engine.state == EditorState()
        assert engine.state.tool == "select"

    def test_unknown_tool(self, engine):
        with pytest.raises(ValueError):
            engine.set_tool("lasso")

    def test_switching_tool_cancels_drag(self, engine):
        engine.pointer_down(20, 20)
        assert engine.state.is_dragging
        engine.set_tool("text")
        assert not engine.state.is_dragging


class TestSelection:
    def test_click_selects_topmost(self, engine):
        hit = engine.pointer_down(60, 25)
        assert hit.id == "price"
        assert engine.state.selected_id == "price"

    def test_click_on_empty_canvas_clears(self, engine):
        engine.pointer_down(15, 15)
        assert engine.state.selected_id == "title"
        engine.pointer_up()
        engine.pointer_down(300, 200)
        assert engine.state.selected_id is None

    def test_stale_selection_is_dropped(self, engine, doc):
        engine.pointer_down(15, 15)
        doc.remove("title")
        assert engine.selected_element is None
        assert engine.state.selected_id is None


class TestDrag:
    def test_drag_moves_by_delta(self, engine):
        engine.pointer_down(15, 15)
        assert engine.pointer_move(25, 20)
        g = engine.selected_element.geometry
        assert (g.x, g.y) == (20, 15)

    def test_drag_uses_zoom(self, engine):
        engine.set_zoom(200)
        engine.pointer_down(30, 30)     # doc (15, 15) -> title
        engine.pointer_move(50, 30)     # +20 screen = +10 doc
        assert engine.selected_element.geometry.x == pytest.approx(20)

    def test_drag_is_relative_to_origin(self, engine):
        engine.pointer_down(15, 15)
        engine.pointer_move(115, 15)
        engine.pointer_move(25, 15)
        assert engine.selected_element.geometry.x == pytest.approx(20)

    def test_drag_stays_in_bounds(self, engine, doc):
        engine.pointer_down(15, 15)
        engine.pointer_move(5000, -5000)
        elem = engine.selected_element
        assert _inside(doc, elem)
        assert elem.geometry.x + elem.geometry.width == pytest.approx(doc.width_px)
        assert elem.geometry.y == 0

    def test_move_without_button_ends_drag(self, engine):
        engine.pointer_down(15, 15)
        assert not engine.pointer_move(40, 40, button_down=False)
        assert not engine.state.is_dragging
        assert engine.selected_element.geometry.x == 10

    def test_move_without_drag_is_noop(self, engine):
        assert not engine.pointer_move(40, 40)

    def test_pointer_up_ends_drag(self, engine):
        engine.pointer_down(15, 15)
        engine.pointer_up()
        assert not engine.pointer_move(40, 40)


class TestZoom:
    def test_zoom_never_touches_geometry(self, engine, doc):
        before = doc.to_dict()
        for level in (50, 75, 125, 150, 200, 100):
            engine.set_zoom(level)
        assert doc.to_dict() == before

    def test_zoom_snaps(self, engine):
        assert engine.set_zoom(110) == 100
        assert engine.state.zoom_percent == 100


class TestCreation:
    @pytest.mark.parametrize("tool", ["text", "barcode", "image"])
    def test_tool_click_creates_and_reverts(self, tool):
        engine = InteractionEngine(TemplateDocument(width_mm=100, height_mm=60))
        engine.set_tool(tool)
        elem = engine.pointer_down(40, 30)
        width, height, content = CREATE_DEFAULTS[tool]
        assert elem.kind == tool
        assert (elem.geometry.width, elem.geometry.height) == (width, height)
        assert elem.content == content
        assert engine.state.tool == "select"
        assert engine.state.selected_id == elem.id

    def test_creation_position_uses_zoom(self):
        engine = InteractionEngine(TemplateDocument(width_mm=100, height_mm=60))
        engine.set_zoom(50)
        engine.set_tool("text")
        elem = engine.pointer_down(20, 10)
        assert (elem.geometry.x, elem.geometry.y) == (40, 20)

    def test_creation_near_edge_is_clamped(self):
        doc = TemplateDocument(width_mm=50, height_mm=30)
        engine = InteractionEngine(doc)
        engine.set_tool("image")
        elem = engine.pointer_down(180, 100)
        assert _inside(doc, elem)

    def test_n_creations(self):
        engine = InteractionEngine(TemplateDocument(width_mm=100, height_mm=100))
        created = []
        for i in range(5):
            engine.set_tool("text")
            created.append(engine.pointer_down(5 * i, 5 * i))
        ids = [e.id for e in created]
        zs = [e.z_index for e in created]
        assert len(set(ids)) == 5
        assert zs == sorted(zs) and len(set(zs)) == 5


class TestSelectedCommands:
    def test_duplicate(self, engine, doc):
        engine.pointer_down(15, 15)
        dup = engine.duplicate_selected()
        assert dup.id != "title"
        assert (dup.geometry.x, dup.geometry.y) == (20, 20)
        assert dup.z_index > max(e.z_index for e in doc.elements if e is not dup)
        assert engine.state.selected_id == dup.id

    def test_delete_clears_selection(self, engine, doc):
        engine.pointer_down(15, 15)
        removed = engine.delete_selected()
        assert removed.id == "title"
        assert doc.get("title") is None
        assert engine.state.selected_id is None

    def test_commands_without_selection(self, engine):
        assert engine.duplicate_selected() is None
        assert engine.delete_selected() is None
        assert engine.bring_forward() is None
        assert engine.send_backward() is None
        assert engine.update_selected(x=5) is None

    def test_z_order(self, engine):
        engine.pointer_down(15, 15)
        assert engine.bring_forward().z_index == 2
        assert engine.send_backward().z_index == 1
        assert engine.send_backward().z_index == 1

    def test_update_selected(self, engine):
        engine.pointer_down(15, 15)
        elem = engine.update_selected(content="Hello", fontSize="24")
        assert elem.content == "Hello"
        assert elem.style.font_size == 24

    def test_replace_document_clears_state(self, engine):
        engine.pointer_down(15, 15)
        engine.replace_document(TemplateDocument())
        assert engine.state.selected_id is None
        assert not engine.state.is_dragging
