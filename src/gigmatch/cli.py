"""Typer CLI entrypoint for the job board."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer

from .config import read_yaml
from .container import MarketplaceContainer, create_container
from .core import JobFilters, MatchResult, sort_by_distance
from .errors import GigMatchError, ValidationError
from .logging import configure_logging
from .schemas import Coordinates

app = typer.Typer(help="Student gig marketplace: post, browse and apply to jobs.")


def _load_settings(config: Path | None) -> dict[str, Any]:
    if not config:
        return {}
    try:
        return read_yaml(config)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc


def _container(ctx: typer.Context) -> MarketplaceContainer:
    return ctx.obj["container"]


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _fail(exc: GigMatchError) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _coordinates(lat: float | None, lng: float | None) -> Coordinates | None:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise typer.BadParameter("--lat and --lng must be given together")
    try:
        return Coordinates(lat=lat, lng=lng)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _render_result(result: MatchResult, *, nearest_first: bool = False) -> dict[str, Any]:
    entries = sort_by_distance(result) if nearest_first else result.jobs
    jobs = []
    for entry in entries:
        record = entry.job.to_record()
        if entry.distance_km is not None:
            record["distanceKm"] = entry.display_distance_km
        jobs.append(record)
    return {"summary": result.summary, "message": result.message, "jobs": jobs}


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    data_dir: Optional[Path] = typer.Option(None, file_okay=False, help="Directory for JSON collections."),
    user: Optional[str] = typer.Option(None, envvar="GIGMATCH_USER", help="Acting user id."),
    no_geocode: bool = typer.Option(False, "--no-geocode", help="Disable address lookups."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
    log_json: bool = typer.Option(True, "--log-json/--log-console", help="Log record format."),
) -> None:
    """Shared options for every command."""
    settings = _load_settings(config)
    if data_dir:
        settings["storage"] = {"backend": "json", "path": str(data_dir)}
    if no_geocode:
        settings.setdefault("geocoding", {})["provider"] = "none"

    configure_logging(log_level, json_output=log_json)
    try:
        container = create_container(settings=settings, user_id=user)
    except GigMatchError as exc:
        _fail(exc)
    ctx.obj = {"container": container}


@app.command("list-jobs")
def list_jobs(
    ctx: typer.Context,
    search: Optional[str] = typer.Option(None, help="Substring of title, description or company."),
    job_type: Optional[str] = typer.Option(None, "--type", help="Exact job type."),
    location: Optional[str] = typer.Option(None, help="Exact location tag."),
    status: Optional[str] = typer.Option(None, help="Exact status."),
) -> None:
    """List catalog jobs matching the given filters."""
    catalog = _container(ctx).catalog()
    try:
        jobs = catalog.list(JobFilters(search=search, type=job_type, location=location, status=status))
    except GigMatchError as exc:
        _fail(exc)
    _echo_json([job.to_record() for job in jobs])


@app.command("post-job")
def post_job(
    ctx: typer.Context,
    title: str = typer.Option(..., help="Job title."),
    location: str = typer.Option(..., help="Human-readable address."),
    description: str = typer.Option("", help="Job description."),
    requirements: str = typer.Option("", help="Requirements text."),
    company: str = typer.Option("", help="Company display name."),
    budget: float = typer.Option(0.0, help="Budget amount."),
    job_type: str = typer.Option("", "--type", help="Job type tag."),
    lat: Optional[float] = typer.Option(None, help="Latitude, skips address lookup."),
    lng: Optional[float] = typer.Option(None, help="Longitude, skips address lookup."),
) -> None:
    """Create a job posting."""
    data: dict[str, Any] = {
        "title": title,
        "location": location,
        "description": description,
        "requirements": requirements,
        "companyName": company,
        "budget": budget,
        "type": job_type,
    }
    coordinates = _coordinates(lat, lng)
    if coordinates is not None:
        data["coordinates"] = coordinates.model_dump()
    try:
        job = _container(ctx).catalog().create(data)
    except GigMatchError as exc:
        _fail(exc)
    _echo_json(job.to_record())


@app.command("update-job")
def update_job(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id."),
    fields: Optional[List[str]] = typer.Option(None, "--set", help="Field assignment as key=value; repeatable."),
    status: Optional[str] = typer.Option(None, help="New status."),
) -> None:
    """Merge field changes into a job."""
    changes: dict[str, Any] = {}
    for assignment in fields or []:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {assignment!r}", param_name="set")
        changes[key.strip()] = value
    if status:
        changes["status"] = status
    try:
        job = _container(ctx).catalog().update(job_id, changes)
    except GigMatchError as exc:
        _fail(exc)
    _echo_json(job.to_record())


@app.command("delete-job")
def delete_job(ctx: typer.Context, job_id: str = typer.Argument(..., help="Job id.")) -> None:
    """Delete a job."""
    try:
        _container(ctx).catalog().delete(job_id)
    except GigMatchError as exc:
        _fail(exc)
    typer.echo(f"Deleted job {job_id}.")


@app.command()
def browse(
    ctx: typer.Context,
    role: str = typer.Option("student", help="Requester role: student or provider."),
    search: str = typer.Option("", help="Substring of title or company."),
    status: str = typer.Option("all", help="Status filter for providers."),
    lat: Optional[float] = typer.Option(None, help="Requester latitude."),
    lng: Optional[float] = typer.Option(None, help="Requester longitude."),
    radius: Optional[float] = typer.Option(None, help="Search radius in km."),
    nearest_first: bool = typer.Option(False, "--nearest-first", help="Order by distance."),
) -> None:
    """Show the jobs visible to a requester."""
    board = _container(ctx).board()
    try:
        result = board.browse(
            role,
            search_query=search,
            status_filter=status,
            user_location=_coordinates(lat, lng),
            radius_km=radius,
        )
    except GigMatchError as exc:
        _fail(exc)
    _echo_json(_render_result(result, nearest_first=nearest_first))


@app.command("apply")
def apply_to_job(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id."),
    name: str = typer.Option("", help="Applicant name."),
    email: str = typer.Option("", help="Applicant email."),
    phone: str = typer.Option("", help="Applicant phone."),
    cover_letter: str = typer.Option("", help="Cover letter text."),
) -> None:
    """Apply to an active job as the acting user."""
    board = _container(ctx).board()
    try:
        application = board.submit_application(
            job_id,
            {"name": name, "email": email, "phone": phone, "coverLetter": cover_letter},
        )
    except GigMatchError as exc:
        _fail(exc)
    _echo_json(application.to_record())


@app.command()
def review(
    ctx: typer.Context,
    application_id: str = typer.Argument(..., help="Application id."),
    status: str = typer.Argument(..., help="reviewed, accepted or rejected."),
) -> None:
    """Move an application to a new review status."""
    board = _container(ctx).board()
    try:
        application = board.review_application(application_id, status)
    except GigMatchError as exc:
        _fail(exc)
    _echo_json(application.to_record())


@app.command()
def locate(
    ctx: typer.Context,
    lat: float = typer.Option(..., help="Latitude."),
    lng: float = typer.Option(..., help="Longitude."),
) -> None:
    """Print the address for a coordinate pair."""
    board = _container(ctx).board()
    address = board.describe_location(_coordinates(lat, lng))
    typer.echo(address or "No address found.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
