"""Shared test fixtures."""

import json
from pathlib import Path

import pytest

from pb2km.models import ExportData, Feature, Note, Space, Status


@pytest.fixture
def space() -> Space:
    return Space(
        id="space_1",
        name="Engineering",
        statuses=[Status(id="st_todo", name="Todo"), Status(id="st_done", name="Done")],
    )


@pytest.fixture
def features() -> list[Feature]:
    return [
        Feature(id="A", name="Dark mode", description="Please", status="todo", created_at="2023-01-01T00:00:00Z"),
        Feature(id="B", name="SSO", description=None, status="Done", created_at="2023-02-01T00:00:00Z"),
        Feature(id="C", name="Export", description="CSV", status="TODO", created_at="2023-03-01T00:00:00Z"),
    ]


@pytest.fixture
def notes() -> list[Note]:
    return [
        Note(id="n1", title="Want dark mode", content="Eyes hurt", features=["A", "missing"], created_at="2023-04-01"),
        Note(id="n2", title="SSO please", content=None, created_at="2023-05-01"),
    ]


@pytest.fixture
def export(features: list[Feature], notes: list[Note]) -> ExportData:
    return ExportData(features=features, notes=notes)


@pytest.fixture
def write_export(tmp_path: Path):
    """Write raw feature/note lists to JSON files and return their paths."""

    def _write(features: list[dict], notes: list[dict]) -> tuple[Path, Path]:
        features_path = tmp_path / "features.json"
        notes_path = tmp_path / "notes.json"
        features_path.write_text(json.dumps(features))
        notes_path.write_text(json.dumps(notes))
        return features_path, notes_path

    return _write
