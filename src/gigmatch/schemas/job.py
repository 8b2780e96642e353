from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

JobStatus = Literal["active", "completed"]


class Coordinates(BaseModel):
    """Latitude/longitude pair in decimal degrees."""

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def as_tuple(self) -> tuple[float, float]:
        return self.lat, self.lng


class JobApplicationEntry(BaseModel):
    """Application entry embedded in a job posting, in submission order."""

    user_id: str
    applied_at: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    cover_letter: str | None = None
    application_id: str | None = None

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class JobDraft(BaseModel):
    """Provider-supplied payload for a new job posting."""

    title: str
    location: str
    description: str = ""
    requirements: str = ""
    company_name: str = ""
    budget: float = 0.0
    type: str = ""
    deadline: str | None = None
    coordinates: Coordinates | None = None

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("title", "location")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class Job(BaseModel):
    """Job posting as persisted in the catalog."""

    id: str
    title: str
    description: str = ""
    requirements: str = ""
    company_name: str = ""
    budget: float = 0.0
    type: str = ""
    location: str = ""
    coordinates: Coordinates | None = None
    status: JobStatus = "active"
    applications: list[JobApplicationEntry] = Field(default_factory=list)
    created_at: str
    owner_id: str | None = None
    deadline: str | None = None

    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _posted_at_alias(cls, data: Any) -> Any:
        # Older records carry postedAt instead of createdAt.
        if isinstance(data, dict) and "postedAt" in data and "createdAt" not in data and "created_at" not in data:
            data = dict(data)
            data["createdAt"] = data.pop("postedAt")
        return data

    @field_validator("applications", mode="before")
    @classmethod
    def _count_as_empty(cls, value: Any) -> Any:
        # Records written by the posting form store a bare count (usually 0).
        if isinstance(value, int) and not isinstance(value, bool):
            return []
        return value

    def to_record(self) -> dict[str, Any]:
        """Serialize for storage using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def field_names_for(model: type[BaseModel], payload: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase aliases in ``payload`` back to model field names."""
    alias_to_name = {
        (info.alias or name): name for name, info in model.model_fields.items()
    }
    return {alias_to_name.get(key, key): value for key, value in payload.items()}
