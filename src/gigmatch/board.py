"""Job board orchestration: catalog listing, matching and applications."""

from __future__ import annotations

from typing import Any, Mapping

import structlog
from pydantic import ValidationError as PydanticValidationError

from .core import ALL_STATUSES, ApplicationStore, JobCatalog, MatchEngine, MatchResult
from .errors import GigMatchError, UnauthorizedError, UpstreamUnavailableError, ValidationError
from .identity import IdentityProvider, require_user
from .schemas import Application, Coordinates, Job


def validate_radius(radius_km: Any) -> float:
    """Reject non-numeric or non-positive radii before they reach the engine."""
    try:
        radius = float(radius_km)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Radius must be a number, got {radius_km!r}") from exc
    if radius != radius or radius <= 0:
        raise ValidationError(f"Radius must be positive, got {radius_km!r}")
    return radius


class JobBoard:
    """Entry point the presentation layer talks to."""

    def __init__(
        self,
        *,
        catalog: JobCatalog,
        engine: MatchEngine,
        applications: ApplicationStore,
        geocoder: Any | None = None,
        identity: IdentityProvider | None = None,
        default_radius_km: float = 10.0,
    ) -> None:
        self._catalog = catalog
        self._engine = engine
        self._applications = applications
        self._geocoder = geocoder
        self._identity = identity
        self._default_radius_km = default_radius_km
        self._logger = structlog.get_logger(__name__)

    @property
    def catalog(self) -> JobCatalog:
        return self._catalog

    @property
    def applications(self) -> ApplicationStore:
        return self._applications

    def browse(
        self,
        role: str,
        *,
        search_query: str = "",
        status_filter: str = ALL_STATUSES,
        user_location: Coordinates | Mapping[str, float] | None = None,
        radius_km: float | None = None,
    ) -> MatchResult:
        radius = validate_radius(self._default_radius_km if radius_km is None else radius_km)
        location = self._coerce_location(user_location)
        jobs = self._catalog.list()
        result = self._engine.visible_jobs(
            jobs,
            role,
            search_query=search_query,
            status_filter=status_filter,
            user_location=location,
            radius_km=radius,
        )
        self._logger.info(
            "board.browse",
            role=role,
            search=search_query,
            status_filter=status_filter,
            radius_km=radius,
            has_location=location is not None,
            visible=len(result),
        )
        return result

    def submit_application(self, job_id: str, data: Mapping[str, Any]) -> Application:
        user_id = require_user(self._identity)
        if not user_id:
            raise UnauthorizedError("Sign in to apply for jobs")
        job = self._catalog.get(job_id)
        if job.status != "active":
            raise ValidationError(f"Job {job_id!r} is not accepting applications")

        application = self._applications.create({**dict(data), "job_id": job_id}, user_id=user_id)
        try:
            self._catalog.apply(job_id, application.user_id, application.applicant_fields())
        except GigMatchError:
            # An application never outlives a failed job entry.
            self._applications.delete(application.id)
            self._logger.warning(
                "board.application_rolled_back", application_id=application.id, job_id=job_id
            )
            raise
        return application

    def review_application(self, application_id: str, status: str) -> Application:
        return self._applications.update_status(application_id, status)

    def complete_job(self, job_id: str) -> Job:
        return self._catalog.update(job_id, {"status": "completed"})

    def describe_location(self, coordinates: Coordinates | Mapping[str, float]) -> str | None:
        """Reverse-geocode for display; failures yield None."""
        if self._geocoder is None:
            return None
        location = self._coerce_location(coordinates)
        try:
            return self._geocoder.reverse(location)
        except UpstreamUnavailableError as exc:
            self._logger.warning("board.reverse_geocoding_failed", error=str(exc))
            return None

    @staticmethod
    def _coerce_location(raw: Coordinates | Mapping[str, float] | None) -> Coordinates | None:
        if raw is None or isinstance(raw, Coordinates):
            return raw
        try:
            return Coordinates.model_validate(dict(raw))
        except (PydanticValidationError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed coordinates: {raw!r}") from exc
