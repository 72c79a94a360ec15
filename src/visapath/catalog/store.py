"""YAML-backed visa catalog: countries and visa types per route."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from visapath.catalog.models import (
    Country,
    CountryStats,
    Document,
    RouteSupport,
    Step,
    VisaType,
    VisaTypeStats,
    visa_type_id,
)
from visapath.core.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
_DEFAULT_VISA_TYPES_DIR = _CONFIG_DIR / "visa_types"
_DEFAULT_COUNTRIES_PATH = _CONFIG_DIR / "countries.yml"

REGIONS = (
    "Asia", "Europe", "North America", "South America", "Africa", "Oceania", "Middle East",
)
_UNIT_DAYS = {"days": 1, "weeks": 7, "months": 30}
_MIN_SEARCH_LENGTH = 2
_SEARCH_LIMIT = 20


def _load_visa_type(path: Path) -> VisaType:
    with open(path) as fh:
        data: dict[str, Any] = yaml.safe_load(fh) or {}

    # Ids default to a slug of the name so YAML authors can omit them.
    for doc in data.get("documents", []):
        doc.setdefault("id", _slug(doc["name"]))
    for step in data.get("steps", []):
        step.setdefault("id", _slug(step["title"]))

    data["origin_country"] = str(data["origin_country"]).upper()
    data["destination_country"] = str(data["destination_country"]).upper()
    data["code"] = str(data["code"]).upper()
    return VisaType.model_validate(data)


def _slug(text: str) -> str:
    return "-".join("".join(c if c.isalnum() else " " for c in text.lower()).split())


class VisaCatalog:
    """Read-mostly catalog of countries and visa types.

    Loads every ``*.yml`` file in the visa types directory. Each file holds a
    single visa type; documents and steps may carry a ``condition``.
    """

    def __init__(
        self,
        visa_types_dir: str | Path | None = None,
        countries_path: str | Path | None = None,
    ) -> None:
        self._visa_types: dict[str, VisaType] = {}
        self._countries: dict[str, Country] = {}
        self._load_visa_types(Path(visa_types_dir) if visa_types_dir else _DEFAULT_VISA_TYPES_DIR)
        self._load_countries(Path(countries_path) if countries_path else _DEFAULT_COUNTRIES_PATH)

    def _load_visa_types(self, visa_types_dir: Path) -> None:
        if not visa_types_dir.exists():
            logger.warning("Visa types directory %s does not exist", visa_types_dir)
            return
        for path in sorted(visa_types_dir.glob("*.yml")):
            visa_type = _load_visa_type(path)
            self._visa_types[visa_type.id] = visa_type
        logger.info("Loaded %d visa types from %s", len(self._visa_types), visa_types_dir)

    def _load_countries(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        for entry in data.get("countries", []):
            country = Country.model_validate({**entry, "code": str(entry["code"]).upper()})
            self._countries[country.code] = country

    def add(self, visa_type: VisaType) -> None:
        self._visa_types[visa_type.id] = visa_type

    # -- Countries --

    def list_countries(self, active_only: bool = True) -> list[Country]:
        countries = sorted(self._countries.values(), key=lambda c: c.name)
        if active_only:
            return [c for c in countries if c.is_active]
        return countries

    def get_country(self, code: str) -> Country | None:
        return self._countries.get(code.upper())

    def has_country(self, code: str) -> bool:
        """True if ``code`` is a known active country, or no countries are loaded."""
        if not self._countries:
            return True
        country = self._countries.get(code.upper())
        return country is not None and country.is_active

    def _sorted_active(self, predicate) -> list[Country]:
        return sorted(
            (c for c in self._countries.values() if c.is_active and predicate(c)),
            key=lambda c: (c.display_order, c.name),
        )

    def origin_countries(self) -> list[Country]:
        return self._sorted_active(lambda c: c.is_origin_country)

    def destination_countries(self) -> list[Country]:
        return self._sorted_active(lambda c: c.is_destination_country)

    def countries_by_region(self, region: str) -> list[Country]:
        """Active countries in ``region``.

        Raises:
            ValidationError: If ``region`` is not one of ``REGIONS``.
        """
        if region not in REGIONS:
            raise ValidationError("Invalid region specified")
        return self._sorted_active(lambda c: c.region == region)

    def check_route(self, origin: str, destination: str) -> RouteSupport:
        """A route is supported when both ends are active and flagged for their role."""
        origin_country = self.get_country(origin)
        destination_country = self.get_country(destination)
        if not (
            origin_country is not None
            and origin_country.is_active
            and origin_country.is_origin_country
            and destination_country is not None
            and destination_country.is_active
            and destination_country.is_destination_country
        ):
            return RouteSupport(is_supported=False)
        return RouteSupport(
            is_supported=True,
            origin=origin_country,
            destination=destination_country,
            visa_type_ids=[v.id for v in self.list_visa_types(origin, destination)],
        )

    def country_stats(self) -> CountryStats:
        stats = CountryStats(total_countries=len(self._countries))
        for country in self._countries.values():
            if country.is_origin_country:
                stats.origin_countries += 1
            if country.is_destination_country:
                stats.destination_countries += 1
            if country.is_active:
                stats.active_countries += 1
                region = country.region or "Unknown"
                stats.by_region[region] = stats.by_region.get(region, 0) + 1
        return stats

    # -- Visa types --

    def list_visa_types(
        self,
        origin: str | None = None,
        destination: str | None = None,
        category: str | None = None,
    ) -> list[VisaType]:
        results = [
            v for v in self._visa_types.values()
            if v.status == "active"
            and (origin is None or v.origin_country == origin.upper())
            and (destination is None or v.destination_country == destination.upper())
            and (category is None or v.category == category.lower())
        ]
        return sorted(results, key=lambda v: (v.display_order, v.name))

    def get_visa_type(self, visa_type_id: str) -> VisaType:
        """Return the visa type or raise NotFoundError."""
        visa_type = self._visa_types.get(visa_type_id.upper())
        if visa_type is None:
            raise NotFoundError(f"Visa type {visa_type_id!r} not found")
        return visa_type

    def find_visa_type(self, origin: str, destination: str, code: str) -> VisaType | None:
        return self._visa_types.get(visa_type_id(origin, destination, code))

    def popular_visa_types(self, limit: int = 10) -> list[VisaType]:
        active = [v for v in self._visa_types.values() if v.status == "active"]
        return sorted(active, key=lambda v: (-v.popularity, v.name))[:max(limit, 0)]

    def search_visa_types(
        self,
        query: str | None,
        origin: str | None = None,
        destination: str | None = None,
        category: str | None = None,
    ) -> list[VisaType]:
        """Case-insensitive substring search over name, description and tags.

        Raises:
            ValidationError: If the query is shorter than two characters.
        """
        needle = (query or "").strip().lower()
        if len(needle) < _MIN_SEARCH_LENGTH:
            raise ValidationError("Search query must be at least 2 characters")

        matches = [
            v for v in self.list_visa_types(origin, destination, category)
            if needle in v.name.lower()
            or needle in v.description.lower()
            or any(needle in tag.lower() for tag in v.tags)
        ]
        return sorted(matches, key=lambda v: (-v.popularity, v.name))[:_SEARCH_LIMIT]

    def visa_type_stats(self) -> VisaTypeStats:
        stats = VisaTypeStats(total_visa_types=len(self._visa_types))
        days: list[int] = []
        for visa_type in self._visa_types.values():
            if visa_type.status != "active":
                continue
            stats.active_visa_types += 1
            category = visa_type.category.value
            stats.by_category[category] = stats.by_category.get(category, 0) + 1
            stats.by_route[visa_type.route_key] = stats.by_route.get(visa_type.route_key, 0) + 1
            if visa_type.processing_time is not None:
                pt = visa_type.processing_time
                days.append(pt.min * _UNIT_DAYS.get(pt.unit, 1))
        if days:
            stats.average_processing_days = round(sum(days) / len(days), 1)
        return stats

    def get_documents(self, visa_type_id: str) -> list[Document]:
        return list(self.get_visa_type(visa_type_id).documents)

    def get_steps(self, visa_type_id: str) -> list[Step]:
        return list(self.get_visa_type(visa_type_id).steps)

    @property
    def visa_type_count(self) -> int:
        return len(self._visa_types)
