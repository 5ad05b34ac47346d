"""Shared pydantic models — export records, remote entities and stage results."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str  # ProductBoard feature ID
    name: str
    description: str | None = None
    status: str  # free text, resolved against the space's statuses
    created_at: str | None = Field(default=None, alias="createdAt")


class Note(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    title: str
    content: str | None = None
    company: str | None = None
    features: list[str] = []  # ProductBoard feature IDs mentioned by the note
    created_at: str | None = Field(default=None, alias="createdAt")

    @field_validator("features", mode="before")
    @classmethod
    def _null_features(cls, value: object) -> object:
        return [] if value is None else value


class ExportData(BaseModel):
    """Both export files, validated."""

    model_config = ConfigDict(frozen=True)

    features: list[Feature]
    notes: list[Note]

    @property
    def statuses(self) -> list[str]:
        return list(dict.fromkeys(f.status for f in self.features))

    @property
    def companies(self) -> list[str]:
        return list(dict.fromkeys(n.company for n in self.notes if n.company))


class Status(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Space(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    statuses: list[Status] = []


class StageResult(BaseModel):
    """Outcome of one import stage.

    ``mapping`` holds every entry created before the stage stopped, so a failed
    stage still reports what already exists remotely.
    """

    model_config = ConfigDict(frozen=True)

    stage: str  # "space" | "statuses" | "work_items" | "companies" | "feedback"
    mapping: dict[str, str] = {}
    error: str | None = None
    entity: str | None = None  # feature id, company name, note id or status text
    detail: list[dict] = []  # raw GraphQL errors

    @property
    def ok(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        if self.entity is None:
            return self.error or ""
        return f"{self.error} [{self.entity}]"


class ImportReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    space: Space | None = None
    statuses: dict[str, str] = {}
    work_items: dict[str, str] = {}
    companies: dict[str, str] = {}
    feedback: dict[str, str] = {}
    companies_skipped: bool = False  # run stopped at the company gate
    failure: StageResult | None = None
