"""Read and validate the ProductBoard export files."""

from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pb2km.models import ExportData, Feature, Note

_FEATURES = TypeAdapter(list[Feature])
_NOTES = TypeAdapter(list[Note])


class ExportError(ValueError):
    """One or more problems across the export files."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("Invalid export data:\n" + "\n".join(f"  {p}" for p in problems))
        self.problems = problems


def _location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _read(path: Path, adapter: TypeAdapter, problems: list[str]) -> list:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        problems.append(f"{path}: {exc.strerror or exc}")
        return []
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        problems.extend(f"{path}: {_location(err['loc'])}: {err['msg']}" for err in exc.errors())
        return []


def load_export(features_path: Path, notes_path: Path) -> ExportData:
    """Load both files, reporting every problem in a single ExportError."""
    problems: list[str] = []
    features = _read(features_path, _FEATURES, problems)
    notes = _read(notes_path, _NOTES, problems)
    if problems:
        raise ExportError(problems)
    return ExportData(features=features, notes=notes)
