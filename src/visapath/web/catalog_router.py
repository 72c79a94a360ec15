"""Catalog API router: countries, visa types, personalized requirements."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Request, Response

from visapath.catalog.requirements import build_requirements
from visapath.catalog.store import VisaCatalog
from visapath.core.errors import VisaPathError
from visapath.export.models import ChecklistPacket
from visapath.journeys.validation import parse_personalization
from visapath.web.errors import http_error

router = APIRouter(prefix="/api", tags=["catalog"])


def _get_catalog(request: Request) -> VisaCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Visa catalog not available")
    return catalog


def _summary(visa_type) -> dict[str, Any]:
    return {
        "id": visa_type.id,
        "name": visa_type.name,
        "code": visa_type.code,
        "category": visa_type.category.value,
        "originCountry": visa_type.origin_country,
        "destinationCountry": visa_type.destination_country,
        "description": visa_type.description,
        "processingTime": visa_type.processing_time.display if visa_type.processing_time else None,
        "visaFee": visa_type.fees.visa_fee.model_dump(mode="json", by_alias=True),
    }


def _countries(countries) -> list[dict[str, Any]]:
    return [c.model_dump(mode="json", by_alias=True) for c in countries]


@router.get("/countries")
async def api_list_countries(request: Request, include_inactive: bool = False) -> list[dict[str, Any]]:
    return _countries(_get_catalog(request).list_countries(active_only=not include_inactive))


@router.get("/countries/origins")
async def api_origin_countries(request: Request) -> list[dict[str, Any]]:
    return _countries(_get_catalog(request).origin_countries())


@router.get("/countries/destinations")
async def api_destination_countries(request: Request) -> list[dict[str, Any]]:
    return _countries(_get_catalog(request).destination_countries())


@router.get("/countries/regions/{region}")
async def api_countries_by_region(region: str, request: Request) -> dict[str, Any]:
    catalog = _get_catalog(request)
    try:
        countries = catalog.countries_by_region(region)
    except VisaPathError as exc:
        raise http_error(exc)
    return {"region": region, "countries": _countries(countries)}


@router.get("/countries/route/{origin}/{destination}")
async def api_check_route(origin: str, destination: str, request: Request) -> dict[str, Any]:
    catalog = _get_catalog(request)
    support = catalog.check_route(origin, destination)
    body = support.model_dump(mode="json", by_alias=True)
    if not support.is_supported:
        body["availableOrigins"] = _countries(catalog.origin_countries())
        body["availableDestinations"] = _countries(catalog.destination_countries())
    return body


@router.get("/countries/stats")
async def api_country_stats(request: Request) -> dict[str, Any]:
    return _get_catalog(request).country_stats().model_dump(by_alias=True)


@router.get("/countries/{code}")
async def api_get_country(code: str, request: Request) -> dict[str, Any]:
    catalog = _get_catalog(request)
    country = catalog.get_country(code)
    if country is None:
        raise HTTPException(status_code=404, detail=f"Country {code!r} not found")
    return country.model_dump(mode="json", by_alias=True)


@router.get("/visa-types")
async def api_list_visa_types(
    request: Request,
    origin: str | None = None,
    destination: str | None = None,
    category: str | None = None,
) -> list[dict[str, Any]]:
    catalog = _get_catalog(request)
    return [_summary(v) for v in catalog.list_visa_types(origin, destination, category)]


@router.get("/visa-types/route/{origin}/{destination}")
async def api_visa_types_for_route(
    origin: str, destination: str, request: Request
) -> list[dict[str, Any]]:
    catalog = _get_catalog(request)
    return [_summary(v) for v in catalog.list_visa_types(origin, destination)]


@router.get("/visa-types/popular")
async def api_popular_visa_types(
    request: Request, limit: int = Query(default=10, ge=1, le=50)
) -> list[dict[str, Any]]:
    return [_summary(v) for v in _get_catalog(request).popular_visa_types(limit)]


@router.get("/visa-types/search")
async def api_search_visa_types(
    request: Request,
    q: str | None = None,
    origin: str | None = None,
    destination: str | None = None,
    category: str | None = None,
) -> dict[str, Any]:
    catalog = _get_catalog(request)
    try:
        results = catalog.search_visa_types(q, origin, destination, category)
    except VisaPathError as exc:
        raise http_error(exc)
    return {"query": q, "visaTypes": [_summary(v) for v in results]}


@router.get("/visa-types/stats")
async def api_visa_type_stats(request: Request) -> dict[str, Any]:
    return _get_catalog(request).visa_type_stats().model_dump(by_alias=True)


@router.get("/visa-types/{visa_type_id}")
async def api_get_visa_type(visa_type_id: str, request: Request) -> dict[str, Any]:
    catalog = _get_catalog(request)
    try:
        visa_type = catalog.get_visa_type(visa_type_id)
    except VisaPathError as exc:
        raise http_error(exc)
    return {"id": visa_type.id, **visa_type.model_dump(mode="json", by_alias=True)}


@router.post("/visa-types/{visa_type_id}/requirements")
async def api_visa_requirements(
    visa_type_id: str,
    request: Request,
    answers: dict[str, Any] | None = Body(default=None),
) -> dict[str, Any]:
    """Documents, steps and fees filtered by the applicant's answers."""
    catalog = _get_catalog(request)
    try:
        visa_type = catalog.get_visa_type(visa_type_id)
        parsed = parse_personalization(answers or {}, visa_type)
    except VisaPathError as exc:
        raise http_error(exc)

    requirements = build_requirements(visa_type, parsed)
    return {
        "visaType": _summary(visa_type),
        **requirements.model_dump(mode="json", by_alias=True),
    }


@router.post("/visa-types/{visa_type_id}/checklist")
async def api_visa_checklist_pdf(
    visa_type_id: str,
    request: Request,
    answers: dict[str, Any] | None = Body(default=None),
) -> Response:
    """Personalized checklist as a downloadable PDF."""
    catalog = _get_catalog(request)
    try:
        visa_type = catalog.get_visa_type(visa_type_id)
        parsed = parse_personalization(answers or {}, visa_type)
    except VisaPathError as exc:
        raise http_error(exc)

    requirements = build_requirements(visa_type, parsed)
    packet = ChecklistPacket(
        visa_type=visa_type,
        documents=requirements.documents,
        steps=requirements.steps,
        fee_estimate=requirements.fee_estimate,
        answers=parsed,
    )
    pdf_bytes = request.app.state.report_renderer.render_checklist_pdf(packet)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="checklist-{visa_type.id.lower()}.pdf"',
        },
    )
