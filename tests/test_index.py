"""Unit tests for the flattened element index."""

from formguard.index import FlattenedElementIndex, flatten, walk_elements
from tests.builders import NUMBER_ID, SET_ID, TEXT_ID, element, number_element, text_element, uid


def nested_document():
    return {
        "elements": [
            text_element(),
            element(
                "section",
                uid(1),
                elements=[
                    element("repeatableSet", SET_ID, "items", elements=[number_element()]),
                ],
            ),
        ]
    }


class TestWalkElements:
    """Test depth-first traversal."""

    def test_visits_in_document_order(self):
        """Should yield parents before children, left to right."""
        paths = [entry.path for entry in walk_elements(nested_document()["elements"])]

        assert paths == [
            ("elements", 0),
            ("elements", 1),
            ("elements", 1, "elements", 0),
            ("elements", 1, "elements", 0, "elements", 0),
        ]

    def test_skips_non_objects(self):
        """Should ignore nodes that are not objects."""
        entries = list(walk_elements(["text", number_element(), None]))

        assert [entry.path for entry in entries] == [("elements", 1)]

    def test_non_list_yields_nothing(self):
        """Should yield nothing for a missing element list."""
        assert list(walk_elements(None)) == []


class TestFlatten:
    """Test building the index."""

    def test_records_nested_elements(self):
        """Should index elements at every depth."""
        index = flatten(nested_document())

        assert len(index) == 4
        assert index.ids() == [TEXT_ID, uid(1), SET_ID, NUMBER_ID]

    def test_entry_fields(self):
        """Should record name, type, path and ancestors."""
        entry = flatten(nested_document()).get(NUMBER_ID)

        assert entry.name == "Numbers"
        assert entry.type == "number"
        assert entry.path == "elements[1].elements[0].elements[0]"
        assert entry.ancestors == (uid(1), SET_ID)

    def test_layout_elements_have_no_name(self):
        """Should record None for unnamed elements."""
        assert flatten(nested_document()).get(uid(1)).name is None

    def test_scoped_to(self):
        """Should narrow the index to one container's descendants."""
        index = flatten(nested_document())

        assert index.scoped_to(SET_ID).ids() == [NUMBER_ID]
        assert index.scoped_to(uid(1)).ids() == [SET_ID, NUMBER_ID]
        assert len(index.scoped_to(TEXT_ID)) == 0

    def test_lookup_misses(self):
        """Should return None for unknown or non-string ids."""
        index = flatten(nested_document())

        assert index.get("missing") is None
        assert index.get(5) is None
        assert 5 not in index
        assert TEXT_ID in index

    def test_first_duplicate_wins(self):
        """Should keep the first element recorded for an id."""
        index = flatten({"elements": [number_element(name="a"), number_element(name="b")]})

        assert len(index) == 1
        assert index.get(NUMBER_ID).name == "a"

    def test_elements_without_ids_are_skipped(self):
        """Should not index elements that have no id, but still index their children."""
        index = flatten({"elements": [{"type": "section", "elements": [number_element()]}]})

        assert index.ids() == [NUMBER_ID]
        assert index.get(NUMBER_ID).ancestors == ()

    def test_multi(self):
        """Should expose the multi flag of select elements."""
        index = flatten({"elements": [element("select", uid(3), "s", multi=True)]})

        assert index.get(uid(3)).multi is True

    def test_custom_key(self):
        """Should flatten a list stored under another key."""
        index = flatten({"children": [number_element()]}, key="children")

        assert list(index)[0].path == "children[0]"

    def test_empty_index(self):
        """Should build an empty index for an empty form."""
        assert len(FlattenedElementIndex([])) == 0
        assert len(flatten({})) == 0
