"""Result records produced by the normalizer and the fleet aggregator.

Both are frozen: built once per request and serialised with to_dict(),
which emits the camelCase keys the dashboard UI consumes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class JobSummary:
    id: str
    name: str
    url: str
    type: str
    folder: str

    last_build_status: str
    is_disabled: bool

    last_build_date: str | None
    last_successful_date: str | None
    last_failed_date: str | None
    days_since_last_build: int | None
    last_build_duration: int
    last_successful_duration: int
    last_failed_duration: int

    total_builds: int
    success_count: int
    failure_count: int
    success_rate: float
    avg_build_duration: int
    avg_successful_duration: int
    avg_failed_duration: int
    min_build_duration: int
    max_build_duration: int
    total_build_duration: int

    is_test_job: bool

    # Display fields for the pipelines table
    last_build_url: str
    last_build: str
    duration: str
    color: str
    last_build_number: int
    last_successful_build: int | None
    last_failed_build: int | None
    in_queue: bool
    buildable: bool

    @property
    def status(self) -> str:
        return self.last_build_status

    def to_dict(self) -> dict:
        data = {_camel(k): v for k, v in asdict(self).items()}
        data["status"] = self.status
        return data


@dataclass(frozen=True)
class FleetMetrics:
    total_jobs: int
    success_rate: float
    failure_rate: float
    unstable_rate: float
    aborted_rate: float
    avg_build_duration: int
    active_jobs: int
    disabled_jobs: int
    test_jobs: int

    def to_dict(self) -> dict:
        return {_camel(k): v for k, v in asdict(self).items()}
