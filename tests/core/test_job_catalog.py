from __future__ import annotations

import itertools
from typing import Any

import pytest

from gigmatch.core import JobCatalog, JobFilters
from gigmatch.errors import NotFoundError, UnauthorizedError, UpstreamUnavailableError, ValidationError
from gigmatch.geocoding import NominatimGeocoder
from gigmatch.geocoding import nominatim as nominatim_module
from gigmatch.identity import StaticIdentity
from gigmatch.schemas import Coordinates
from gigmatch.storage import InMemoryStorage


class StubGeocoder:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self._result = result
        self._error = error
        self.calls: list[str] = []

    def forward(self, address: str) -> Coordinates | None:
        self.calls.append(address)
        if self._error is not None:
            raise self._error
        return self._result

    def reverse(self, coordinates: Coordinates) -> str | None:
        return None


def build_catalog(**kwargs: Any) -> JobCatalog:
    counter = itertools.count(1)
    defaults: dict[str, Any] = {
        "storage": InMemoryStorage(),
        "geocoder": StubGeocoder(Coordinates(lat=51.5, lng=-0.12)),
        "now_provider": lambda: "2024-05-01T12:00:00Z",
        "id_factory": lambda: f"job-{next(counter)}",
    }
    defaults.update(kwargs)
    storage = defaults.pop("storage")
    return JobCatalog(storage, **defaults)


def job_data(**kwargs: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": "Tutor",
        "description": "Maths tutoring for GCSE students",
        "companyName": "Bright Minds",
        "budget": 25,
        "type": "on-site",
        "location": "London",
        "requirements": "A-level maths",
    }
    data.update(kwargs)
    return data


def test_create_assigns_defaults_and_geocodes():
    geocoder = StubGeocoder(Coordinates(lat=51.5, lng=-0.12))
    catalog = build_catalog(geocoder=geocoder)

    job = catalog.create(job_data())

    assert job.id == "job-1"
    assert job.status == "active"
    assert job.applications == []
    assert job.created_at == "2024-05-01T12:00:00Z"
    assert job.coordinates == Coordinates(lat=51.5, lng=-0.12)
    assert job.company_name == "Bright Minds"
    assert geocoder.calls == ["London"]
    assert catalog.list() == [job]


def test_create_survives_unresolvable_address():
    catalog = build_catalog(geocoder=StubGeocoder(None))

    job = catalog.create(job_data(title="Tutor", location="Unresolvable Address"))

    assert job.coordinates is None
    assert catalog.get(job.id).coordinates is None


def test_create_survives_geocoding_outage():
    geocoder = StubGeocoder(error=UpstreamUnavailableError("geocoding", "timed out"))
    catalog = build_catalog(geocoder=geocoder)

    job = catalog.create(job_data())

    assert job.coordinates is None


@pytest.mark.parametrize(
    "failure",
    [
        NotFoundError("address", "Unresolvable Address"),
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        RuntimeError("adapter bug"),
    ],
)
def test_create_treats_any_geocoder_failure_as_not_found(failure: Exception):
    catalog = build_catalog(geocoder=StubGeocoder(error=failure))

    job = catalog.create(job_data(location="Unresolvable Address"))

    assert job.coordinates is None
    assert catalog.get(job.id).coordinates is None


def test_create_survives_undecodable_nominatim_response(monkeypatch: pytest.MonkeyPatch):
    class GarbledResponse:
        def read(self) -> bytes:
            return b"\xff\xfe[]"

        def __enter__(self) -> "GarbledResponse":
            return self

        def __exit__(self, *exc_info: Any) -> None:
            return None

    monkeypatch.setattr(nominatim_module.request, "urlopen", lambda req, timeout=None: GarbledResponse())
    catalog = build_catalog(geocoder=NominatimGeocoder())

    job = catalog.create(job_data())

    assert job.coordinates is None


def test_create_drops_out_of_range_coordinates_from_geocoder():
    catalog = build_catalog(geocoder=StubGeocoder({"lat": 123.0, "lng": 0.0}))

    job = catalog.create(job_data())

    assert job.coordinates is None


def test_create_keeps_caller_supplied_coordinates():
    geocoder = StubGeocoder(Coordinates(lat=0.0, lng=0.0))
    catalog = build_catalog(geocoder=geocoder)

    job = catalog.create(job_data(coordinates={"lat": 48.85, "lng": 2.35}))

    assert job.coordinates == Coordinates(lat=48.85, lng=2.35)
    assert geocoder.calls == []


def test_create_rejects_missing_title():
    catalog = build_catalog()
    data = job_data()
    del data["title"]

    with pytest.raises(ValidationError):
        catalog.create(data)


def test_create_rejects_blank_location():
    with pytest.raises(ValidationError):
        build_catalog().create(job_data(location="   "))


def test_ids_are_not_reused_after_delete():
    catalog = build_catalog(id_factory=None)
    first = catalog.create(job_data())
    catalog.delete(first.id)
    second = catalog.create(job_data())

    assert first.id != second.id


def test_list_filters_combine_with_and():
    catalog = build_catalog()
    catalog.create(job_data(title="Graphic Designer", type="remote", location="Leeds"))
    catalog.create(job_data(title="Web Designer", type="on-site", location="Leeds"))
    catalog.create(job_data(title="Barista", companyName="Design Cafe", type="on-site", location="York"))

    assert [job.title for job in catalog.list({"search": "desi"})] == [
        "Graphic Designer",
        "Web Designer",
        "Barista",
    ]
    on_site_leeds = catalog.list(JobFilters(search="DESIGN", type="on-site", location="Leeds"))
    assert [job.title for job in on_site_leeds] == ["Web Designer"]


def test_list_search_covers_description():
    catalog = build_catalog()
    catalog.create(job_data(title="Helper", description="Weekend market stall"))

    assert len(catalog.list({"search": "MARKET"})) == 1
    assert catalog.list({"search": "nowhere"}) == []


def test_list_status_filter_and_idempotence():
    catalog = build_catalog()
    first = catalog.create(job_data())
    catalog.create(job_data(title="Cleaner"))
    catalog.update(first.id, {"status": "completed"})

    completed = catalog.list({"status": "completed"})
    assert [job.id for job in completed] == [first.id]
    assert catalog.list({"status": "active"}) == catalog.list({"status": "active"})
    assert catalog.status_counts() == {"completed": 1, "active": 1}


def test_update_merges_fields_and_keeps_id():
    catalog = build_catalog()
    job = catalog.create(job_data())

    updated = catalog.update(job.id, {"id": "other", "budget": 40, "companyName": "New Co"})

    assert updated.id == job.id
    assert updated.budget == 40
    assert updated.company_name == "New Co"
    assert updated.title == job.title
    assert catalog.get(job.id).budget == 40


def test_update_missing_job_raises_not_found():
    with pytest.raises(NotFoundError):
        build_catalog().update("missing-id", {"status": "completed"})


def test_update_rejects_unknown_status():
    catalog = build_catalog()
    job = catalog.create(job_data())

    with pytest.raises(ValidationError):
        catalog.update(job.id, {"status": "archived"})


def test_delete_is_not_idempotent():
    catalog = build_catalog()
    job = catalog.create(job_data())

    catalog.delete(job.id)

    with pytest.raises(NotFoundError):
        catalog.delete(job.id)
    assert catalog.list() == []


def test_apply_appends_in_order():
    times = iter(["2024-05-01T12:00:00Z", "2024-05-02T09:00:00Z", "2024-05-03T10:00:00Z"])
    catalog = build_catalog(now_provider=lambda: next(times))
    job = catalog.create(job_data())

    catalog.apply(job.id, "student-a", {"name": "Ana", "coverLetter": "Hi"})
    updated = catalog.apply(job.id, "student-b", {"name": "Ben"})

    assert [entry.user_id for entry in updated.applications] == ["student-a", "student-b"]
    assert updated.applications[0].cover_letter == "Hi"
    assert updated.applications[1].applied_at == "2024-05-03T10:00:00Z"
    assert len(catalog.get(job.id).applications) == 2


def test_apply_to_missing_job_raises_not_found():
    with pytest.raises(NotFoundError):
        build_catalog().apply("nope", "student-a", {})


def test_mutations_require_identity_when_configured():
    catalog = build_catalog(identity=StaticIdentity(None))

    with pytest.raises(UnauthorizedError):
        catalog.create(job_data())
    with pytest.raises(UnauthorizedError):
        catalog.delete("job-1")


def test_create_records_owner_from_identity():
    catalog = build_catalog(identity=StaticIdentity("provider-7"))

    job = catalog.create(job_data())

    assert job.owner_id == "provider-7"


def test_records_are_stored_with_camel_case_keys():
    storage = InMemoryStorage()
    catalog = build_catalog(storage=storage)
    catalog.create(job_data())

    record = storage.read_collection("jobs")[0]
    assert record["companyName"] == "Bright Minds"
    assert record["createdAt"] == "2024-05-01T12:00:00Z"
    assert record["coordinates"] == {"lat": 51.5, "lng": -0.12}


def test_existing_records_with_posted_at_are_readable():
    storage = InMemoryStorage(
        {
            "jobs": [
                {
                    "id": "legacy",
                    "title": "Dog walker",
                    "companyName": "Paws",
                    "postedAt": "2023-12-01T08:00:00Z",
                    "status": "active",
                }
            ]
        }
    )
    catalog = build_catalog(storage=storage)

    job = catalog.get("legacy")

    assert job.created_at == "2023-12-01T08:00:00Z"
    assert job.coordinates is None


def test_storage_failure_surfaces():
    class BrokenStorage:
        def read_collection(self, name: str) -> list[dict]:
            raise UpstreamUnavailableError("storage", "disk gone")

        def write_collection(self, name: str, records: list[dict]) -> None:
            raise AssertionError("not reached")

    catalog = build_catalog(storage=BrokenStorage())

    with pytest.raises(UpstreamUnavailableError):
        catalog.create(job_data())


def test_records_with_application_count_are_readable():
    storage = InMemoryStorage(
        {
            "jobs": [
                {
                    "id": "counted",
                    "title": "Barista",
                    "location": "Soho",
                    "createdAt": "2024-02-01T08:00:00Z",
                    "status": "active",
                    "applications": 0,
                }
            ]
        }
    )
    catalog = build_catalog(storage=storage)

    assert [job.id for job in catalog.list()] == ["counted"]
    job = catalog.apply("counted", "student-1", {"name": "Ana"})
    assert [entry.user_id for entry in job.applications] == ["student-1"]
    assert storage.read_collection("jobs")[0]["applications"][0]["userId"] == "student-1"


def test_unreadable_record_is_a_storage_error():
    storage = InMemoryStorage({"jobs": [{"id": "broken", "title": "No timestamp", "status": "paused"}]})
    catalog = build_catalog(storage=storage)

    with pytest.raises(UpstreamUnavailableError):
        catalog.list()
