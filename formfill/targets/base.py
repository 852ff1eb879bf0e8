"""Interfaces the fill engine uses to reach a live target environment."""
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from formfill.domain.models import TargetElement


class FormTarget(ABC):
    """Resolves selectors and applies values to a target environment."""

    @abstractmethod
    def resolve(self, selector: str) -> Optional[TargetElement]:
        """Return the element for a selector, or None when it no longer exists."""

    @abstractmethod
    def set_value(self, element: TargetElement, value: Any) -> None:
        """Write a plain value and emit whatever change notification the target expects."""

    @abstractmethod
    def set_checked(self, element: TargetElement, checked: bool) -> None:
        """Check or uncheck a checkbox or radio element."""

    def radio_group(self, element: TargetElement) -> List[TargetElement]:
        """Elements sharing the radio group of `element`."""
        return [element]


class Indicator(ABC):
    """Marks targets after a fill attempt. Purely cosmetic."""

    @abstractmethod
    def mark(self, element: TargetElement, success: bool) -> None:
        pass

    def clear(self) -> None:
        pass


class NullIndicator(Indicator):
    def mark(self, element: TargetElement, success: bool) -> None:
        pass
