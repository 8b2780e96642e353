from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ApplicationStatus = Literal["pending", "reviewed", "accepted", "rejected"]

# Forward-only transitions; accepted and rejected are terminal.
APPLICATION_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"reviewed", "accepted", "rejected"}),
    "reviewed": frozenset({"accepted", "rejected"}),
    "accepted": frozenset(),
    "rejected": frozenset(),
}


class ApplicationForm(BaseModel):
    """Fields a student submits when applying to a job."""

    job_id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    cover_letter: str = ""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Application(BaseModel):
    """A student's submission against a job posting."""

    id: str
    job_id: str
    user_id: str
    status: ApplicationStatus = "pending"
    applied_at: str
    name: str = ""
    email: str = ""
    phone: str = ""
    cover_letter: str = ""
    reviewed_at: str | None = None

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def can_transition_to(self, status: str) -> bool:
        return status == self.status or status in APPLICATION_TRANSITIONS.get(self.status, frozenset())

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def applicant_fields(self) -> dict[str, Any]:
        """Fields copied onto the job's embedded application entry."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "cover_letter": self.cover_letter,
            "application_id": self.id,
        }

