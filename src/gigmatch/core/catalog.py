"""Job catalog: authoritative job collection with filtered listing."""

from __future__ import annotations

import threading
import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import pendulum
import structlog
from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFoundError, UpstreamUnavailableError, from_pydantic
from ..identity import IdentityProvider, require_user
from ..schemas import Coordinates, Job, JobApplicationEntry, JobDraft
from ..schemas.job import field_names_for


@dataclass(slots=True)
class JobFilters:
    """Optional listing predicates, combined with AND."""

    search: str | None = None
    type: str | None = None
    location: str | None = None
    status: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "JobFilters":
        if not raw:
            return cls()
        return cls(
            search=raw.get("search") or None,
            type=raw.get("type") or None,
            location=raw.get("location") or None,
            status=raw.get("status") or None,
        )

    def is_empty(self) -> bool:
        return not (self.search or self.type or self.location or self.status)

    def matches(self, job: Job) -> bool:
        if self.search:
            needle = self.search.lower()
            haystacks = (job.title, job.description, job.company_name)
            if not any(needle in (text or "").lower() for text in haystacks):
                return False
        if self.type and job.type != self.type:
            return False
        if self.location and job.location != self.location:
            return False
        if self.status and job.status != self.status:
            return False
        return True


def _iso_now() -> str:
    return pendulum.now("UTC").to_iso8601_string()


def _new_id() -> str:
    return uuid.uuid4().hex


class JobCatalog:
    """CRUD and filtered listing over the ``jobs`` collection.

    Listing returns jobs in insertion order. Mutations are read-modify-write
    against the storage collaborator and run under a catalog-wide lock;
    geocoding for new postings happens before the lock is taken.
    """

    COLLECTION = "jobs"

    def __init__(
        self,
        storage: Any,
        *,
        geocoder: Any | None = None,
        identity: IdentityProvider | None = None,
        now_provider: Callable[[], str] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._storage = storage
        self._geocoder = geocoder
        self._identity = identity
        self._now = now_provider or _iso_now
        self._new_id = id_factory or _new_id
        self._lock = threading.RLock()
        self._logger = structlog.get_logger(__name__)

    def list(self, filters: JobFilters | Mapping[str, Any] | None = None) -> list[Job]:
        if not isinstance(filters, JobFilters):
            filters = JobFilters.from_mapping(filters)
        jobs = self._load()
        if filters.is_empty():
            return jobs
        return [job for job in jobs if filters.matches(job)]

    def get(self, job_id: str) -> Job:
        for job in self._load():
            if job.id == job_id:
                return job
        raise NotFoundError("job", job_id)

    def create(self, data: Mapping[str, Any] | JobDraft) -> Job:
        owner_id = require_user(self._identity)
        draft = self._validate_draft(data)
        coordinates = draft.coordinates or self._resolve_coordinates(draft.location)

        payload = draft.model_dump(mode="python")
        payload.update(
            id=self._new_id(),
            created_at=self._now(),
            status="active",
            applications=[],
            coordinates=coordinates,
            owner_id=owner_id,
        )
        try:
            job = Job.model_validate(payload)
        except PydanticValidationError as exc:
            raise from_pydantic("Invalid job", exc) from exc

        with self._lock:
            jobs = self._load()
            jobs.append(job)
            self._save(jobs)

        self._logger.info(
            "catalog.job_created",
            job_id=job.id,
            has_coordinates=job.coordinates is not None,
        )
        return job

    def update(self, job_id: str, partial: Mapping[str, Any]) -> Job:
        require_user(self._identity)
        changes = field_names_for(Job, dict(partial))
        if changes.pop("id", job_id) != job_id:
            self._logger.warning("catalog.id_overwrite_ignored", job_id=job_id)

        with self._lock:
            jobs = self._load()
            index = self._index_of(jobs, job_id)
            merged = jobs[index].model_dump(mode="python")
            merged.update(changes)
            try:
                updated = Job.model_validate(merged)
            except PydanticValidationError as exc:
                raise from_pydantic("Invalid job update", exc) from exc
            jobs[index] = updated
            self._save(jobs)

        self._logger.info("catalog.job_updated", job_id=job_id, fields=sorted(changes))
        return updated

    def delete(self, job_id: str) -> None:
        require_user(self._identity)
        with self._lock:
            jobs = self._load()
            index = self._index_of(jobs, job_id)
            del jobs[index]
            self._save(jobs)
        self._logger.info("catalog.job_deleted", job_id=job_id)

    def apply(
        self,
        job_id: str,
        user_id: str,
        application_data: Mapping[str, Any] | None = None,
    ) -> Job:
        require_user(self._identity)
        fields = field_names_for(JobApplicationEntry, dict(application_data or {}))
        fields.update(user_id=user_id, applied_at=self._now())
        try:
            entry = JobApplicationEntry.model_validate(fields)
        except PydanticValidationError as exc:
            raise from_pydantic("Invalid application", exc) from exc

        with self._lock:
            jobs = self._load()
            index = self._index_of(jobs, job_id)
            job = jobs[index]
            job.applications.append(entry)
            self._save(jobs)

        self._logger.info(
            "catalog.application_appended",
            job_id=job_id,
            user_id=user_id,
            application_count=len(job.applications),
        )
        return job

    def status_counts(self) -> dict[str, int]:
        """Number of jobs per status."""
        return dict(Counter(job.status for job in self._load()))

    def _validate_draft(self, data: Mapping[str, Any] | JobDraft) -> JobDraft:
        if isinstance(data, JobDraft):
            return data
        try:
            return JobDraft.model_validate(dict(data))
        except PydanticValidationError as exc:
            raise from_pydantic("Invalid job", exc) from exc

    def _resolve_coordinates(self, location: str) -> Coordinates | None:
        if self._geocoder is None:
            return None
        try:
            coordinates = self._geocoder.forward(location)
        except Exception as exc:
            # Any adapter failure is treated as "not found".
            self._logger.warning(
                "catalog.geocoding_failed",
                location=location,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
        if coordinates is None:
            self._logger.info("catalog.geocoding_not_found", location=location)
            return None
        if not isinstance(coordinates, Coordinates):
            try:
                coordinates = Coordinates.model_validate(coordinates)
            except PydanticValidationError as exc:
                self._logger.warning(
                    "catalog.geocoding_malformed", location=location, error=str(exc)
                )
                return None
        return coordinates

    def _load(self) -> list[Job]:
        records = self._storage.read_collection(self.COLLECTION)
        try:
            return [Job.model_validate(record) for record in records]
        except PydanticValidationError as exc:
            self._logger.error("catalog.corrupt_record", collection=self.COLLECTION, error=str(exc))
            raise UpstreamUnavailableError(
                "storage", f"unreadable record in {self.COLLECTION!r}: {exc}"
            ) from exc

    def _save(self, jobs: Iterable[Job]) -> None:
        self._storage.write_collection(self.COLLECTION, [job.to_record() for job in jobs])

    @staticmethod
    def _index_of(jobs: list[Job], job_id: str) -> int:
        for index, job in enumerate(jobs):
            if job.id == job_id:
                return index
        raise NotFoundError("job", job_id)
