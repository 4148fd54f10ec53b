"""Flattened element index.

Built once per validation pass from a normalized form definition. Maps every
element id, including elements nested in pages, sections, repeatable sets and
inlined sub-forms, to its name, type tag and path. The index is a plain value:
it is never cached or shared between calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from formguard.schema import Path, format_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementEntry:
    """One element found while walking a form definition.

    Attributes:
        path: Path of the element (e.g. ("elements", 1, "elements", 0))
        element: The element node
    """
    path: Path
    element: Mapping[str, Any]


def walk_elements(elements: Any, path: Path = ("elements",)) -> Iterator[ElementEntry]:
    """Yield every element depth-first, in document order.

    Nodes that are not objects are skipped; a structurally invalid tree can
    still be walked.
    """
    if not isinstance(elements, list):
        return
    for index, element in enumerate(elements):
        if not isinstance(element, Mapping):
            continue
        element_path = path + (index,)
        yield ElementEntry(path=element_path, element=element)
        yield from walk_elements(element.get("elements"), element_path + ("elements",))


@dataclass(frozen=True)
class IndexedElement:
    """An element recorded in the flattened index.

    Attributes:
        id: Element id
        name: Element name (None for layout elements)
        type: Element type tag
        path: Formatted path (e.g. "elements[1].elements[0]")
        ancestors: Ids of the containers enclosing the element, outermost first
        element: The normalized element node
    """
    id: str
    name: Optional[str]
    type: str
    path: str
    ancestors: Tuple[str, ...]
    element: Mapping[str, Any]

    @property
    def multi(self) -> bool:
        return self.element.get("multi") is True


class FlattenedElementIndex:
    """Id lookup over every element of one form definition.

    Examples:
        >>> index = flatten({"elements": [
        ...     {"id": "a", "type": "section", "elements": [{"id": "b", "type": "number", "name": "n"}]},
        ... ]})
        >>> index.get("b").ancestors
        ('a',)
        >>> [e.id for e in index.scoped_to("a")]
        ['b']
    """

    def __init__(self, entries: Iterable[IndexedElement]) -> None:
        self._entries: Dict[str, IndexedElement] = {}
        for entry in entries:
            # Ids are unique in a structurally valid tree; keep the first one otherwise.
            self._entries.setdefault(entry.id, entry)

    def get(self, element_id: Any) -> Optional[IndexedElement]:
        if not isinstance(element_id, str):
            return None
        return self._entries.get(element_id)

    def scoped_to(self, container_id: str) -> "FlattenedElementIndex":
        """Index of the elements nested (at any depth) under one container."""
        return FlattenedElementIndex(
            entry for entry in self._entries.values() if container_id in entry.ancestors
        )

    def ids(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, element_id: Any) -> bool:
        return self.get(element_id) is not None

    def __iter__(self) -> Iterator[IndexedElement]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def flatten(document: Mapping[str, Any], key: str = "elements") -> FlattenedElementIndex:
    """Build the index of every element under ``document[key]``."""
    entries: List[IndexedElement] = []
    ancestors_by_path: Dict[Path, Tuple[str, ...]] = {(): ()}
    for found in walk_elements(document.get(key), (key,)):
        element = found.element
        container_path = found.path[:-2]
        ancestors = ancestors_by_path.get(container_path, ())
        element_id = element.get("id")
        if isinstance(element_id, str):
            ancestors_by_path[found.path] = ancestors + (element_id,)
            name = element.get("name")
            entries.append(
                IndexedElement(
                    id=element_id,
                    name=name if isinstance(name, str) else None,
                    type=str(element.get("type")),
                    path=format_path(found.path),
                    ancestors=ancestors,
                    element=element,
                )
            )
        else:
            ancestors_by_path[found.path] = ancestors
    index = FlattenedElementIndex(entries)
    logger.debug("Flattened %d elements", len(index))
    return index


__all__ = [
    "ElementEntry",
    "walk_elements",
    "IndexedElement",
    "FlattenedElementIndex",
    "flatten",
]
