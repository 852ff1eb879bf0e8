"""
Tests for merging auto, manual and saved-profile mappings.
"""
import pytest

from formfill.domain.models import ConfidenceLevel, MappingEntry, MappingSource, TargetField
from formfill.services.mapper import (
    DEFAULT_PROFILE_CONFIDENCE,
    apply_profile,
    merge_mappings,
    to_serializable,
)

FIELDS = [
    TargetField(selector="#email", type="email", name="email"),
    TargetField(selector="#phone", type="tel", name="phone"),
    TargetField(selector="#name", name="name"),
]


def auto_entry(selector, confidence=0.6, level=ConfidenceLevel.MEDIUM):
    field = next(f for f in FIELDS if f.selector == selector)
    return MappingEntry(field=field, selector=selector, confidence=confidence, level=level)


class TestMergeMappings:

    def test_no_manual_edits_is_identity(self):
        auto = {"Email": auto_entry("#email"), "Phone": auto_entry("#phone", 0.3, ConfidenceLevel.LOW)}
        merged = merge_mappings(auto, {}, FIELDS)

        assert merged == auto

    def test_manual_selection_overrides(self):
        merged = merge_mappings({"Email": auto_entry("#email")}, {"Name": "#name"}, FIELDS)

        entry = merged["Name"]
        assert entry.source is MappingSource.MANUAL
        assert entry.confidence == 1.0
        assert entry.level is ConfidenceLevel.HIGH
        assert entry.field is FIELDS[2]
        assert merged["Email"].source is MappingSource.AUTO

    def test_empty_selection_unmaps(self):
        merged = merge_mappings({"Email": auto_entry("#email")}, {"Email": ""}, FIELDS)
        assert "Email" not in merged

        merged = merge_mappings({"Email": auto_entry("#email")}, {"Email": None}, FIELDS)
        assert "Email" not in merged

    def test_manual_selector_is_taken_from_other_column(self):
        auto = {"Email": auto_entry("#email"), "Phone": auto_entry("#phone")}
        merged = merge_mappings(auto, {"Contact": "#email"}, FIELDS)

        assert "Email" not in merged
        assert merged["Contact"].selector == "#email"
        assert merged["Phone"].selector == "#phone"

    def test_unknown_selector_keeps_entry_without_field(self):
        merged = merge_mappings({}, {"Email": "#gone"}, FIELDS)
        assert merged["Email"].field is None
        assert merged["Email"].selector == "#gone"

    def test_inputs_are_not_modified(self):
        auto = {"Email": auto_entry("#email")}
        manual = {"Email": "#name"}
        merge_mappings(auto, manual, FIELDS)
        assert auto["Email"].selector == "#email"
        assert manual == {"Email": "#name"}


class TestApplyProfile:

    def test_rebuilds_against_current_fields(self):
        saved = {
            "Email": {"selector": "#email", "confidence": 0.8},
            "Phone": "#phone",
            "Fax": {"selector": "#fax"},
        }
        mapping = apply_profile(saved, FIELDS)

        assert set(mapping) == {"Email", "Phone"}
        assert mapping["Email"].confidence == 0.8
        assert mapping["Phone"].confidence == DEFAULT_PROFILE_CONFIDENCE
        assert all(entry.source is MappingSource.PROFILE for entry in mapping.values())
        assert all(entry.level is ConfidenceLevel.HIGH for entry in mapping.values())
        assert mapping["Email"].field is FIELDS[0]

    def test_no_fields_means_empty_mapping(self):
        assert apply_profile({"Email": {"selector": "#a"}}, []) == {}
        assert apply_profile(None, FIELDS) == {}

    def test_repeated_selector_keeps_first_column(self):
        mapping = apply_profile({"Email": "#email", "Mail": "#email"}, FIELDS)
        assert list(mapping) == ["Email"]

    @pytest.mark.parametrize("confidence", ["high", None, 0, -1, 7, float("nan"), [0.5]])
    def test_unusable_confidence_falls_back(self, confidence):
        mapping = apply_profile({"Email": {"selector": "#email", "confidence": confidence}}, FIELDS)
        assert mapping["Email"].confidence == DEFAULT_PROFILE_CONFIDENCE

    def test_numeric_string_confidence(self):
        mapping = apply_profile({"Email": {"selector": "#email", "confidence": "0.65"}}, FIELDS)
        assert mapping["Email"].confidence == 0.65

    def test_non_string_selectors_are_dropped(self):
        saved = {
            "Email": {"selector": ["#email"]},
            "Phone": {"selector": {"css": "#phone"}},
            "Name": 42,
            "Other": {"selector": "#name"},
        }
        assert list(apply_profile(saved, FIELDS)) == ["Other"]


def test_to_serializable_drops_field_descriptors():
    data = to_serializable({"Email": auto_entry("#email", 0.9, ConfidenceLevel.HIGH)})
    assert data == {"Email": {"selector": "#email", "confidence": 0.9, "level": "high"}}


def test_profile_round_trip_through_serializable():
    original = {"Email": auto_entry("#email", 0.7)}
    restored = apply_profile(to_serializable(original), FIELDS)
    assert restored["Email"].selector == "#email"
    assert restored["Email"].confidence == 0.7
