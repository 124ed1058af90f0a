from __future__ import annotations

import dataclasses

import pytest

from colrecon.models import (
    ColumnCard,
    DuplicationConflict,
    EngineSettings,
    ProceedResult,
    ScrollGeometry,
    SchemaRegistry,
    SourceTable,
    TargetField,
)

EMAIL = TargetField("email", "Email", required=True)


def test_schema_registry_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        SchemaRegistry.of([EMAIL, TargetField("email", "E-mail again")])


def test_schema_registry_lookup_and_order():
    phone = TargetField("phone", "Phone")
    schema = SchemaRegistry.of([phone, EMAIL])
    assert list(schema) == [phone, EMAIL]
    assert len(schema) == 2
    assert schema.get("email") is EMAIL
    assert schema.get("fax") is None
    assert schema.required_fields == (EMAIL,)


def test_source_table_is_immutable_and_indexed():
    table = SourceTable("f.csv", ["a", "b"], {"a": ["1", "2"]})
    assert table.index_of("b") == 1
    assert "a" in table and "z" not in table
    assert table.preview("a") == ("1", "2")
    assert table.preview("b") == ()
    assert [(c.header, c.index) for c in table.columns] == [("a", 0), ("b", 1)]
    with pytest.raises(dataclasses.FrozenInstanceError):
        table.file_name = "other.csv"


def test_conflict_selection_is_copy():
    conflict = DuplicationConflict(EMAIL, "a", "b")
    selected = conflict.with_selection("b")
    assert conflict.selected_header is None
    assert selected.selected_header == "b"
    assert selected.parties == ("a", "b")


def test_scroll_geometry_measurable():
    assert ScrollGeometry(0, 100, 50).measurable
    assert not ScrollGeometry(0, 100, 0).measurable
    assert not ScrollGeometry(-1, 100, 50).measurable


def test_engine_settings_seconds():
    s = EngineSettings(debounce_ms=250, settle_ms=500)
    assert s.debounce_seconds == pytest.approx(0.25)
    assert s.settle_seconds == pytest.approx(0.5)


def test_proceed_result_blocked():
    assert ProceedResult(missing_required=(EMAIL,)).blocked
    assert ProceedResult(missing_required=(EMAIL,)).missing_field_names == ["Email"]
    assert not ProceedResult().blocked


def test_column_card_selector_visibility():
    base = dict(header="h", index=0, preview=())
    assert ColumnCard(match=None, ignored=False, changing=False, **base).show_selector
    assert not ColumnCard(match=EMAIL, ignored=False, changing=False, **base).show_selector
    assert ColumnCard(match=EMAIL, ignored=False, changing=True, **base).show_selector
    assert not ColumnCard(match=None, ignored=True, changing=False, **base).show_selector
