"""Pydantic schema definitions for jobs, applications and configuration."""

from __future__ import annotations

from .application import (
    APPLICATION_TRANSITIONS,
    Application,
    ApplicationForm,
    ApplicationStatus,
)
from .job import (
    Coordinates,
    Job,
    JobApplicationEntry,
    JobDraft,
    JobStatus,
)

__all__ = [
    "APPLICATION_TRANSITIONS",
    "Application",
    "ApplicationForm",
    "ApplicationStatus",
    "Coordinates",
    "Job",
    "JobApplicationEntry",
    "JobDraft",
    "JobStatus",
]
