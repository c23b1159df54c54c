"""Element tree operations — search, detach, and move.

The template's element list is a forest. Traversal is depth-first and
only descends into ``container`` children. Moves detach the node from
wherever it sits, so an element never has two parents.
"""

from typing import Iterator

from .errors import SceneReferenceError, ValidationError
from .model import ContainerElement, Element, Template


def iter_elements(elements: list[Element]) -> Iterator[Element]:
    """Depth-first pre-order walk over an element forest."""
    for element in elements:
        yield element
        if isinstance(element, ContainerElement):
            yield from iter_elements(element.children)


def find_element(elements: list[Element], element_id: str) -> Element | None:
    """First element with this id, or None."""
    for element in iter_elements(elements):
        if element.element_id == element_id:
            return element
    return None


def _remove_from(elements: list[Element], element_id: str) -> Element | None:
    for i, element in enumerate(elements):
        if element.element_id == element_id:
            return elements.pop(i)
        if isinstance(element, ContainerElement):
            removed = _remove_from(element.children, element_id)
            if removed is not None:
                return removed
    return None


def remove_element_from_template(template: Template, element_id: str) -> Element | None:
    """Detach and return the element, or None when the id is not in the tree.

    Sibling order is preserved. Whether "not found" is fatal is the
    caller's decision.
    """
    return _remove_from(template.elements, element_id)


def add_element_to_container(template: Template, element_id: str, container_id: str) -> None:
    """Move an element (with its subtree) to the end of a container's children.

    All checks run before the tree is touched, so a rejected move leaves
    the template unchanged.

    Raises:
        SceneReferenceError: Either id is not in the tree.
        ValidationError: Destination is not a container, or is the element
            itself or one of its descendants (the move would create a cycle).
    """
    element = find_element(template.elements, element_id)
    if element is None:
        raise SceneReferenceError(f"Element not found: {element_id}")

    container = find_element(template.elements, container_id)
    if container is None:
        raise SceneReferenceError(f"Container not found: {container_id}")

    if not isinstance(container, ContainerElement):
        raise ValidationError(f"Element {container_id} is not a container")

    if any(e.element_id == container_id for e in iter_elements([element])):
        raise ValidationError(
            f"Cannot move {element_id} into {container_id}: "
            f"destination is inside the moved element"
        )

    _remove_from(template.elements, element_id)
    container.children.append(element)
