"""Import pipeline: space → statuses → work items → companies → feedback.

Every stage returns a StageResult. run_import stops at the first failed stage;
mapping process exit codes is left to the CLI.
"""

from rich import print as rprint

from pb2km.kitemaker import KitemakerAPIError, KitemakerClient
from pb2km.models import ExportData, Feature, ImportReport, Note, Space, StageResult


def resolve_statuses(space: Space, statuses: list[str]) -> StageResult:
    """Map each status text to the space status with the same name, ignoring case."""
    status_map: dict[str, str] = {}
    for status in statuses:
        match = next((s for s in space.statuses if s.name.lower() == status.lower()), None)
        if match is None:
            return StageResult(
                stage="statuses",
                mapping=status_map,
                error=f'Could not find status "{status}" in Kitemaker space {space.name}',
                entity=status,
            )
        status_map[status] = match.id
    return StageResult(stage="statuses", mapping=status_map)


def create_work_items(
    client: KitemakerClient,
    space: Space,
    features: list[Feature],
    status_map: dict[str, str],
) -> StageResult:
    """Create one work item per feature, last feature in the file first."""
    work_items: dict[str, str] = {}
    for feature in reversed(features):
        try:
            work_items[feature.id] = client.create_work_item(
                space_id=space.id,
                title=feature.name,
                description=feature.description,
                status_id=status_map[feature.status],
                created_at=feature.created_at,
            )
        except KitemakerAPIError as exc:
            return StageResult(
                stage="work_items",
                mapping=work_items,
                error=f"Error creating work item: {exc.message}",
                entity=feature.id,
                detail=exc.errors,
            )
    rprint(f"Work items created: {len(work_items)}")
    return StageResult(stage="work_items", mapping=work_items)


def create_companies(client: KitemakerClient, companies: list[str]) -> StageResult:
    company_map: dict[str, str] = {}
    for company in companies:
        try:
            company_map[company] = client.create_company(company)
        except KitemakerAPIError as exc:
            return StageResult(
                stage="companies",
                mapping=company_map,
                error=f"Error creating company: {exc.message}",
                entity=company,
                detail=exc.errors,
            )
    rprint(f"Companies created: {len(company_map)}")
    return StageResult(stage="companies", mapping=company_map)


def link_insight_ids(note: Note, work_items: dict[str, str]) -> list[str]:
    """Work item IDs for the features a note mentions; unmapped features are dropped."""
    return [work_items[f] for f in note.features if work_items.get(f)]


def create_feedback(
    client: KitemakerClient,
    notes: list[Note],
    company_map: dict[str, str],
    work_items: dict[str, str],
) -> StageResult:
    feedback: dict[str, str] = {}
    for note in notes:
        try:
            feedback[note.id] = client.create_feedback(
                title=note.title,
                content=note.content,
                company_id=company_map.get(note.company) if note.company else None,
                link_insight_to_entity_ids=link_insight_ids(note, work_items),
                created_at=note.created_at,
            )
        except KitemakerAPIError as exc:
            return StageResult(
                stage="feedback",
                mapping=feedback,
                error=f"Error creating feedback: {exc.message}",
                entity=note.id,
                detail=exc.errors,
            )
    rprint(f"Feedback created: {len(feedback)}")
    return StageResult(stage="feedback", mapping=feedback)


def run_import(client: KitemakerClient, export: ExportData, space_key: str) -> ImportReport:
    """Run every stage in order, halting on the first failure.

    KitemakerAPIError from the space lookup becomes a failed "space" stage;
    any other exception propagates to the caller.
    """
    try:
        space = client.get_space(space_key)
    except KitemakerAPIError as exc:
        failure = StageResult(
            stage="space",
            error=f"Error fetching space: {exc.message}",
            entity=space_key,
            detail=exc.errors,
        )
        return ImportReport(failure=failure)
    if space is None:
        failure = StageResult(stage="space", error="Could not find space in Kitemaker", entity=space_key)
        return ImportReport(failure=failure)

    rprint(f"Space fetched: {space.name}")

    statuses = resolve_statuses(space, export.statuses)
    if not statuses.ok:
        return ImportReport(space=space, failure=statuses)

    work_items = create_work_items(client, space, export.features, statuses.mapping)
    if not work_items.ok:
        return ImportReport(space=space, statuses=statuses.mapping, work_items=work_items.mapping, failure=work_items)

    # Companies and feedback only run when the notes name no company at all.
    # The gate is inverted relative to its name; see DESIGN.md before changing it.
    companies_found = export.companies
    if len(companies_found) != 0:
        return ImportReport(
            space=space,
            statuses=statuses.mapping,
            work_items=work_items.mapping,
            companies_skipped=True,
        )

    companies = create_companies(client, companies_found)
    if not companies.ok:
        return ImportReport(
            space=space,
            statuses=statuses.mapping,
            work_items=work_items.mapping,
            companies=companies.mapping,
            failure=companies,
        )

    feedback = create_feedback(client, export.notes, companies.mapping, work_items.mapping)
    return ImportReport(
        space=space,
        statuses=statuses.mapping,
        work_items=work_items.mapping,
        companies=companies.mapping,
        feedback=feedback.mapping,
        failure=None if feedback.ok else feedback,
    )
