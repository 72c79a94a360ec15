"""Journey API router: progress tracking, personalization, sharing, notes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import Field

from visapath.auth.models import Identity
from visapath.auth.middleware import require_identity, require_role
from visapath.core.errors import VisaPathError
from visapath.core.types import CamelModel, SharePermission
from visapath.export.models import JourneyReport
from visapath.journeys.engine import JourneyEngine
from visapath.journeys.models import Journey
from visapath.web.errors import http_error

router = APIRouter(prefix="/api/journeys", tags=["journeys"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class JourneyCreateRequest(CamelModel):
    origin_country: str
    destination_country: str
    user_type: str | None = None
    visa_type: str | None = None
    personalization_data: dict[str, Any] = Field(default_factory=dict)
    checklist: dict[str, Any] = Field(default_factory=dict)
    step_completion: dict[str, Any] = Field(default_factory=dict)


class StepUpdateRequest(CamelModel):
    # Left untyped so non-boolean values reach the engine's validation.
    completed: Any = True


class ChecklistUpdateRequest(CamelModel):
    checklist: dict[str, Any]


class PersonalizationUpdateRequest(CamelModel):
    personalization_data: dict[str, Any]


class StatusUpdateRequest(CamelModel):
    status: str | None = None
    phase: str | None = None


class ShareRequest(CamelModel):
    email: str
    permission: str = SharePermission.VIEW


class NoteRequest(CamelModel):
    content: str


class DocumentAttachRequest(CamelModel):
    name: str
    type: str = ""
    url: str = ""
    size: int | None = None
    checksum: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_engine(request: Request) -> JourneyEngine:
    engine = getattr(request.app.state, "journey_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Journey engine not available")
    return engine


def _dump(journey: Journey) -> dict[str, Any]:
    return journey.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("")
async def api_create_or_resume(
    body: JourneyCreateRequest,
    request: Request,
    response: Response,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    """Save progress for a route: resumes the active journey or starts one."""
    engine = _get_engine(request)
    try:
        journey, created = await engine.create_or_resume(
            identity,
            origin=body.origin_country,
            destination=body.destination_country,
            user_type=body.user_type,
            visa_type=body.visa_type,
            personalization_data=body.personalization_data,
            checklist=body.checklist,
            step_completion=body.step_completion,
        )
    except VisaPathError as exc:
        raise http_error(exc)

    response.status_code = 201 if created else 200
    return _dump(journey)


@router.get("")
async def api_list_journeys(
    request: Request,
    status: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        page = await engine.list_journeys(identity, status=status, limit=limit, offset=offset)
    except VisaPathError as exc:
        raise http_error(exc)

    return {
        "journeys": [_dump(j) for j in page.journeys],
        "pagination": {
            "total": page.total,
            "limit": page.limit,
            "offset": page.offset,
            "hasMore": page.has_more,
        },
    }


@router.get("/progress")
async def api_load_progress(
    request: Request,
    origin_country: str | None = Query(default=None, alias="originCountry"),
    destination_country: str | None = Query(default=None, alias="destinationCountry"),
    identity: Identity = require_identity(),
) -> dict[str, Any] | None:
    """Most recent active journey in the shape the frontend restores from."""
    engine = _get_engine(request)
    try:
        journey = await engine.load_progress(identity, origin_country, destination_country)
    except VisaPathError as exc:
        raise http_error(exc)
    return journey.progress_payload() if journey else None


@router.get("/stats")
async def api_journey_stats(
    request: Request,
    identity: Identity = require_role("admin"),
) -> dict[str, Any]:
    engine = _get_engine(request)
    stats = await engine.journey_stats()
    return stats.model_dump(mode="json", by_alias=True)


@router.get("/{journey_id}")
async def api_get_journey(
    journey_id: str, request: Request, identity: Identity = require_identity()
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.get_journey(journey_id, identity)
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.delete("/{journey_id}", status_code=204)
async def api_delete_journey(
    journey_id: str, request: Request, identity: Identity = require_identity()
) -> Response:
    engine = _get_engine(request)
    try:
        await engine.delete(journey_id, identity)
    except VisaPathError as exc:
        raise http_error(exc)
    return Response(status_code=204)


@router.patch("/{journey_id}/steps/{step_id}")
async def api_update_step(
    journey_id: str,
    step_id: str,
    body: StepUpdateRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.set_step_completion(journey_id, identity, step_id, body.completed)
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.patch("/{journey_id}/checklist")
async def api_update_checklist(
    journey_id: str,
    body: ChecklistUpdateRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.update_checklist(journey_id, identity, body.checklist)
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.patch("/{journey_id}/personalization")
async def api_update_personalization(
    journey_id: str,
    body: PersonalizationUpdateRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.update_personalization(
            journey_id, identity, body.personalization_data
        )
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.patch("/{journey_id}/status")
async def api_update_status(
    journey_id: str,
    body: StatusUpdateRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.update_status(
            journey_id, identity, status=body.status, phase=body.phase
        )
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.post("/{journey_id}/share")
async def api_share_journey(
    journey_id: str,
    body: ShareRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.share(journey_id, identity, body.email, body.permission)
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.post("/{journey_id}/notes", status_code=201)
async def api_add_note(
    journey_id: str,
    body: NoteRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.add_note(journey_id, identity, body.content)
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.post("/{journey_id}/documents", status_code=201)
async def api_attach_document(
    journey_id: str,
    body: DocumentAttachRequest,
    request: Request,
    identity: Identity = require_identity(),
) -> dict[str, Any]:
    engine = _get_engine(request)
    try:
        journey = await engine.attach_document(
            journey_id,
            identity,
            name=body.name,
            doc_type=body.type,
            url=body.url,
            size=body.size,
            checksum=body.checksum,
        )
    except VisaPathError as exc:
        raise http_error(exc)
    return _dump(journey)


@router.get("/{journey_id}/report")
async def api_journey_report(
    journey_id: str,
    request: Request,
    format: str = Query(default="pdf", pattern="^(pdf|json)$"),
    identity: Identity = require_identity(),
) -> Response:
    """Progress report for a journey, as PDF (default) or JSON."""
    engine = _get_engine(request)
    try:
        journey = await engine.get_journey(journey_id, identity)
    except VisaPathError as exc:
        raise http_error(exc)

    report = JourneyReport.build(journey, engine.visa_type_for(journey))
    renderer = request.app.state.report_renderer
    if format == "json":
        return Response(
            content=renderer.render_journey_json(report),
            media_type="application/json",
        )
    return Response(
        content=renderer.render_journey_pdf(report),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="journey-{journey.id}.pdf"',
        },
    )
