"""
Pytest configuration and shared fixtures.
"""
from typing import List, Tuple

import pytest

from formfill.domain.models import FieldOption, TargetElement, TargetField
from formfill.services.mapper import merge_mappings
from formfill.targets.base import Indicator


class RecordingIndicator(Indicator):
    """Indicator that remembers every mark and clear."""

    def __init__(self):
        self.marks: List[Tuple[str, bool]] = []
        self.cleared = 0

    def mark(self, element: TargetElement, success: bool) -> None:
        self.marks.append((element.selector, success))

    def clear(self) -> None:
        self.cleared += 1


@pytest.fixture
def fields():
    """A small signup form snapshot."""
    return [
        TargetField(selector="#first", name="first_name", label="First Name"),
        TargetField(selector="#email", type="email", name="email", label="Email", required=True),
        TargetField(selector="#age", type="number", name="age", label="Age", min=0, max=120),
        TargetField(
            selector="#country",
            type="select",
            name="country",
            label="Country",
            options=[FieldOption("us", "United States"), FieldOption("ca", "Canada")],
        ),
        TargetField(selector="#terms", type="checkbox", name="terms", label="Accept terms"),
        TargetField(selector="#plan-basic", type="radio", name="plan", value="basic", label="Basic"),
        TargetField(selector="#plan-pro", type="radio", name="plan", value="pro", label="Pro"),
    ]


@pytest.fixture
def indicator():
    return RecordingIndicator()


@pytest.fixture
def mapping_for(fields):
    """Build a manual mapping from {column: selector} against the fields fixture."""
    def build(pairs):
        return merge_mappings({}, pairs, fields)
    return build
