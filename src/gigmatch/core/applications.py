"""Application records and their review workflow."""

from __future__ import annotations

import threading
import uuid
from typing import Any, Callable, Mapping

import pendulum
import structlog
from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFoundError, UpstreamUnavailableError, ValidationError, from_pydantic
from ..identity import IdentityProvider, require_user
from ..schemas import APPLICATION_TRANSITIONS, Application, ApplicationForm
from ..schemas.job import field_names_for


class ApplicationStore:
    """CRUD over the ``applications`` collection.

    Status only moves forward: pending to reviewed, accepted or rejected, and
    reviewed to accepted or rejected.
    """

    COLLECTION = "applications"

    def __init__(
        self,
        storage: Any,
        *,
        identity: IdentityProvider | None = None,
        now_provider: Callable[[], str] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._storage = storage
        self._identity = identity
        self._now = now_provider or (lambda: pendulum.now("UTC").to_iso8601_string())
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._lock = threading.RLock()
        self._logger = structlog.get_logger(__name__)

    def list(self, *, job_id: str | None = None, user_id: str | None = None) -> list[Application]:
        return [
            application
            for application in self._load()
            if (job_id is None or application.job_id == job_id)
            and (user_id is None or application.user_id == user_id)
        ]

    def get(self, application_id: str) -> Application:
        for application in self._load():
            if application.id == application_id:
                return application
        raise NotFoundError("application", application_id)

    def create(self, data: Mapping[str, Any] | ApplicationForm, *, user_id: str | None = None) -> Application:
        current_user = require_user(self._identity)
        applicant = user_id or current_user
        if not applicant:
            raise ValidationError("Application requires a user id")
        try:
            form = data if isinstance(data, ApplicationForm) else ApplicationForm.model_validate(dict(data))
            application = Application(
                id=self._new_id(),
                user_id=applicant,
                applied_at=self._now(),
                status="pending",
                **form.model_dump(),
            )
        except PydanticValidationError as exc:
            raise from_pydantic("Invalid application", exc) from exc

        with self._lock:
            applications = self._load()
            applications.append(application)
            self._save(applications)

        self._logger.info(
            "applications.created",
            application_id=application.id,
            job_id=application.job_id,
            user_id=applicant,
        )
        return application

    def update_status(self, application_id: str, status: str) -> Application:
        require_user(self._identity)
        self._check_known_status(status)

        with self._lock:
            applications = self._load()
            index = self._index_of(applications, application_id)
            current = applications[index]
            if current.status == status:
                return current
            updated = self._transition(current, status)
            applications[index] = updated
            self._save(applications)

        self._logger.info(
            "applications.status_changed",
            application_id=application_id,
            previous=current.status,
            status=status,
        )
        return updated

    def update(self, application_id: str, partial: Mapping[str, Any]) -> Application:
        """Merge applicant-editable fields and an optional status in one write.

        Nothing is saved when either the fields or the status change is invalid.
        """
        require_user(self._identity)
        changes = field_names_for(Application, dict(partial))
        for protected in ("id", "job_id", "user_id", "applied_at"):
            changes.pop(protected, None)
        status = changes.pop("status", None)
        if status is not None:
            self._check_known_status(status)

        with self._lock:
            applications = self._load()
            index = self._index_of(applications, application_id)
            current = applications[index]
            merged = current.model_dump(mode="python")
            merged.update(changes)
            try:
                updated = Application.model_validate(merged)
            except PydanticValidationError as exc:
                raise from_pydantic("Invalid application update", exc) from exc
            if status is not None and status != current.status:
                updated = self._transition(updated, status)
            applications[index] = updated
            self._save(applications)

        self._logger.info(
            "applications.updated",
            application_id=application_id,
            fields=sorted(changes),
            status=updated.status,
        )
        return updated

    def delete(self, application_id: str) -> None:
        require_user(self._identity)
        with self._lock:
            applications = self._load()
            index = self._index_of(applications, application_id)
            del applications[index]
            self._save(applications)
        self._logger.info("applications.deleted", application_id=application_id)

    @staticmethod
    def _check_known_status(status: str) -> None:
        if status not in APPLICATION_TRANSITIONS:
            raise ValidationError(f"Unknown application status: {status!r}")

    def _transition(self, application: Application, status: str) -> Application:
        if not application.can_transition_to(status):
            raise ValidationError(
                f"Cannot move application from {application.status!r} to {status!r}"
            )
        return application.model_copy(update={"status": status, "reviewed_at": self._now()})

    def _load(self) -> list[Application]:
        records = self._storage.read_collection(self.COLLECTION)
        try:
            return [Application.model_validate(record) for record in records]
        except PydanticValidationError as exc:
            self._logger.error("applications.corrupt_record", collection=self.COLLECTION, error=str(exc))
            raise UpstreamUnavailableError(
                "storage", f"unreadable record in {self.COLLECTION!r}: {exc}"
            ) from exc

    def _save(self, applications: list[Application]) -> None:
        self._storage.write_collection(
            self.COLLECTION, [application.to_record() for application in applications]
        )

    @staticmethod
    def _index_of(applications: list[Application], application_id: str) -> int:
        for index, application in enumerate(applications):
            if application.id == application_id:
                return index
        raise NotFoundError("application", application_id)
