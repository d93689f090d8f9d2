"""
Tests for the annotation store
"""
import pytest

from snapmark.editor.annotations import ArrowAnnotation, RectangleAnnotation, TextAnnotation
from snapmark.editor.store import NO_SELECTION, AnnotationStore


@pytest.fixture
def filled_store():
    store = AnnotationStore()
    store.append(RectangleAnnotation(0, 0, 10, 10))
    store.append(ArrowAnnotation(0, 0, 50, 50))
    store.append(TextAnnotation(5, 5, "hi"))
    return store


class TestAppendAndIterate:
    """Tests for ordering"""

    def test_empty_store(self, store):
        """Test a new store is empty with no selection"""
        assert len(store) == 0
        assert store.selected_index == NO_SELECTION
        assert store.selected is None

    def test_append_returns_index(self, store):
        """Test append returns the index of the new annotation"""
        assert store.append(RectangleAnnotation(0, 0, 1, 1)) == 0
        assert store.append(RectangleAnnotation(0, 0, 1, 1)) == 1

    def test_iterate_in_insertion_order(self, filled_store):
        """Test insertion order is preserved"""
        kinds = [type(a).__name__ for a in filled_store.iterate()]

        assert kinds == ["RectangleAnnotation", "ArrowAnnotation", "TextAnnotation"]

    def test_append_keeps_selection(self, filled_store):
        """Test appending does not change the selection"""
        filled_store.set_selected(1)
        filled_store.append(RectangleAnnotation(0, 0, 1, 1))

        assert filled_store.selected_index == 1

    def test_get_out_of_range(self, filled_store):
        """Test get raises for invalid index"""
        with pytest.raises(IndexError):
            filled_store.get(3)
        with pytest.raises(IndexError):
            filled_store.get(-1)


class TestRemoval:
    """Tests for removal and selection reset"""

    def test_remove_last(self, filled_store):
        """Test remove_last pops the most recent annotation"""
        removed = filled_store.remove_last()

        assert isinstance(removed, TextAnnotation)
        assert len(filled_store) == 2

    def test_remove_last_on_empty(self, store):
        """Test remove_last on an empty store is a no-op"""
        assert store.remove_last() is None
        assert len(store) == 0

    def test_remove_at_resets_selection(self, filled_store):
        """Test removing any annotation clears the selection"""
        filled_store.set_selected(2)
        filled_store.remove_at(0)

        assert filled_store.selected_index == NO_SELECTION
        assert len(filled_store) == 2

    def test_remove_at_out_of_range(self, filled_store):
        """Test removing an invalid index does nothing"""
        filled_store.set_selected(1)

        assert filled_store.remove_at(7) is None
        assert len(filled_store) == 3
        assert filled_store.selected_index == 1

    def test_clear(self, filled_store):
        """Test clear empties and deselects"""
        filled_store.set_selected(0)
        filled_store.clear()

        assert len(filled_store) == 0
        assert filled_store.selected_index == NO_SELECTION


class TestSelection:
    """Tests for the selection invariant"""

    def test_select_valid(self, filled_store):
        """Test selecting a valid index"""
        filled_store.set_selected(1)

        assert isinstance(filled_store.selected, ArrowAnnotation)

    def test_select_invalid_raises(self, filled_store):
        """Test selecting an invalid index raises"""
        with pytest.raises(IndexError):
            filled_store.set_selected(5)

    def test_deselect_with_none(self, filled_store):
        """Test None clears the selection"""
        filled_store.set_selected(0)
        filled_store.set_selected(None)

        assert filled_store.selected_index == NO_SELECTION
