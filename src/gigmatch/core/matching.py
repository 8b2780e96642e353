"""Role-aware job visibility and geo-radius matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal, Sequence

import structlog

from ..errors import ValidationError
from ..schemas import Coordinates, Job
from .distance import format_distance, haversine_km, round_distance

Role = Literal["student", "provider"]

ROLES: tuple[str, ...] = ("student", "provider")
ALL_STATUSES = "all"


@dataclass(slots=True)
class MatchedJob:
    """A visible job with its distance from the requester (students only)."""

    job: Job
    distance_km: float | None = None
    precision: int = 1

    @property
    def display_distance_km(self) -> float | None:
        if self.distance_km is None:
            return None
        return round_distance(self.distance_km, self.precision)

    @property
    def distance_label(self) -> str | None:
        if self.distance_km is None:
            return None
        return format_distance(self.distance_km, self.precision)


@dataclass(slots=True)
class MatchResult:
    """Visible jobs plus the counters the job list displays."""

    role: Role
    jobs: list[MatchedJob] = field(default_factory=list)
    total: int = 0
    within_radius: int | None = None
    radius_km: float | None = None
    message: str | None = None

    def __len__(self) -> int:
        return len(self.jobs)

    def ids(self) -> list[str]:
        return [entry.job.id for entry in self.jobs]

    @property
    def summary(self) -> str:
        if self.role == "student":
            radius = self.radius_km or 0
            return (
                f"Showing {len(self.jobs)} of {self.within_radius or 0} available jobs "
                f"within {radius:g}km"
            )
        return f"Showing {len(self.jobs)} of {self.total} jobs"


def matches_search(job: Job, query: str) -> bool:
    """Case-insensitive substring match over title and company name."""
    if not query:
        return True
    needle = query.lower()
    return needle in (job.title or "").lower() or needle in (job.company_name or "").lower()


class MatchEngine:
    """Compute the jobs a requester may see.

    Providers see every job matching the search and status filter. Students
    see only active, geocoded jobs within ``radius_km`` of their location and
    nothing at all until a location is set. Output keeps catalog order.
    """

    NO_LOCATION_MESSAGE = "Set your location to see jobs near you."
    NO_RESULTS_IN_RADIUS_MESSAGE = (
        "No active jobs found within {radius:g}km of your location. "
        "Try adjusting your search radius."
    )
    NO_RESULTS_MESSAGE = "No jobs found. Try adjusting your filters."

    def __init__(
        self,
        *,
        distance_fn: Callable[[Coordinates, Coordinates], float] = haversine_km,
        precision: int = 1,
    ) -> None:
        self._distance = distance_fn
        self._precision = precision
        self._logger = structlog.get_logger(__name__)

    def visible_jobs(
        self,
        all_jobs: Iterable[Job],
        role: str,
        search_query: str = "",
        status_filter: str = ALL_STATUSES,
        user_location: Coordinates | None = None,
        radius_km: float = 10.0,
    ) -> MatchResult:
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role!r}")
        jobs = list(all_jobs)
        query = search_query or ""

        if role == "provider":
            return self._provider_view(jobs, query, status_filter)
        return self._student_view(jobs, query, user_location, radius_km)

    def _provider_view(self, jobs: Sequence[Job], query: str, status_filter: str) -> MatchResult:
        visible = [
            MatchedJob(job=job, precision=self._precision)
            for job in jobs
            if matches_search(job, query)
            and (not status_filter or status_filter == ALL_STATUSES or job.status == status_filter)
        ]
        return MatchResult(
            role="provider",
            jobs=visible,
            total=len(jobs),
            message=None if visible else self.NO_RESULTS_MESSAGE,
        )

    def _student_view(
        self,
        jobs: Sequence[Job],
        query: str,
        user_location: Coordinates | None,
        radius_km: float,
    ) -> MatchResult:
        if user_location is None:
            self._logger.debug("matching.no_user_location", total=len(jobs))
            return MatchResult(
                role="student",
                total=len(jobs),
                within_radius=0,
                radius_km=radius_km,
                message=self.NO_LOCATION_MESSAGE,
            )

        visible: list[MatchedJob] = []
        within_radius = 0
        for job in jobs:
            if job.coordinates is None or job.status != "active":
                continue
            distance = self._distance(user_location, job.coordinates)
            if distance > radius_km:
                continue
            within_radius += 1
            if matches_search(job, query):
                visible.append(
                    MatchedJob(job=job, distance_km=distance, precision=self._precision)
                )

        message = None
        if not visible:
            message = self.NO_RESULTS_IN_RADIUS_MESSAGE.format(radius=radius_km)

        self._logger.debug(
            "matching.student_view",
            total=len(jobs),
            within_radius=within_radius,
            visible=len(visible),
            radius_km=radius_km,
        )
        return MatchResult(
            role="student",
            jobs=visible,
            total=len(jobs),
            within_radius=within_radius,
            radius_km=radius_km,
            message=message,
        )


def sort_by_distance(result: MatchResult) -> list[MatchedJob]:
    """Nearest-first view of a result; entries without a distance go last.

    The engine itself keeps catalog order; callers opt into this ordering.
    """
    return sorted(
        result.jobs,
        key=lambda entry: (entry.distance_km is None, entry.distance_km or 0.0),
    )
