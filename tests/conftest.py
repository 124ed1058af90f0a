# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from colrecon.logging.init import reset_logging
from colrecon.models.schema import SchemaRegistry, TargetField
from colrecon.models.source_table import SourceTable
from colrecon.services.scheduler import ManualScheduler
from colrecon.services.session import ReconciliationSession


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("COLRECON_REGISTRY", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_registry_yaml() -> str:
    return """fields:
  - id: email
    display_name: Email
    description: Primary contact email
    required: true
  - id: phone
    display_name: Phone
    description: Mobile or landline
  - id: first_name
    display_name: First Name
    required: true
  - id: last_name
    display_name: Last Name
settings:
  preview_rows: 4
  debounce_ms: 100
  settle_ms: 300
"""


@pytest.fixture()
def write_registry(temp_workdir: Path, sample_registry_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "registry.yml"
    cfg.write_text(sample_registry_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def contact_schema() -> SchemaRegistry:
    return SchemaRegistry.of([
        TargetField("email", "Email", "Primary contact email", required=True),
        TargetField("phone", "Phone", "Mobile or landline"),
        TargetField("first_name", "First Name", required=True),
        TargetField("last_name", "Last Name"),
    ])


@pytest.fixture()
def contact_table() -> SourceTable:
    return SourceTable(
        file_name="contacts.csv",
        source_columns=["E-mail", "Mobile", "First Name", "Surname", "Notes"],
        preview_rows={
            "E-mail": ["a@example.com", "b@example.com"],
            "Mobile": ["0400 000 000", "0411 111 111"],
            "First Name": ["Ann", "Bob"],
            "Surname": ["Lee", "Ng"],
            "Notes": ["vip", ""],
        },
    )


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def make_session(scheduler: ManualScheduler):
    def _make(schema: SchemaRegistry, table: SourceTable, **kwargs) -> ReconciliationSession:
        kwargs.setdefault("scheduler", scheduler)
        return ReconciliationSession(schema, table, **kwargs)
    return _make


@pytest.fixture()
def write_csv():
    def _write(path: Path, rows: list[list[object]]) -> Path:
        pd.DataFrame(rows).to_csv(path, header=False, index=False)
        return path
    return _write


@pytest.fixture()
def write_xlsx():
    def _write(path: Path, rows: list[list[object]]) -> Path:
        with pd.ExcelWriter(path) as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
        return path
    return _write
