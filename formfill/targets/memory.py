"""In-memory form target built from a field snapshot."""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from formfill.domain.models import TargetElement, TargetField
from formfill.targets.base import FormTarget
from formfill.utils.text import to_text


class InMemoryFormTarget(FormTarget):
    """Holds one element per field and records every write.

    Values are stored as text, the way an input element holds them.
    """

    def __init__(self, fields: Iterable[TargetField]):
        self.elements: Dict[str, TargetElement] = {}
        self.writes: List[Tuple[str, str]] = []
        for field in fields:
            self.elements[field.selector] = TargetElement(
                selector=field.selector,
                type=field.field_type,
                name=field.name,
                value=field.value or "",
                label=field.label,
            )

    def resolve(self, selector: str) -> Optional[TargetElement]:
        return self.elements.get(selector)

    def set_value(self, element: TargetElement, value: Any) -> None:
        element.value = to_text(value)
        self.writes.append((element.selector, element.value))

    def set_checked(self, element: TargetElement, checked: bool) -> None:
        if checked and element.type == "radio":
            for other in self.radio_group(element):
                other.checked = False
        element.checked = checked
        self.writes.append((element.selector, "checked" if checked else "unchecked"))

    def radio_group(self, element: TargetElement) -> List[TargetElement]:
        if not element.name:
            return [element]
        return [
            other for other in self.elements.values()
            if other.type == "radio" and other.name == element.name
        ]

    def remove(self, selector: str) -> None:
        """Drop an element, as if it disappeared from the page."""
        self.elements.pop(selector, None)

    def values(self) -> Dict[str, str]:
        return {selector: element.value for selector, element in self.elements.items()}

    def checked(self) -> Dict[str, bool]:
        return {selector: element.checked for selector, element in self.elements.items()}
