"""
The one pipeline behind every dashboard endpoint:

    JobSource -> raw jobs -> normalize_job -> [JobSummary] -> aggregate_fleet

load_fleet() picks the source once.  It walks the live controller and, when
that controller is unreachable (connection refused, unknown host, HTTP 401),
swaps in the synthetic source and flags the snapshot.  Configuration errors,
timeouts and other HTTP errors propagate.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import requests

from fleet.config import Settings
from fleet.metrics import aggregate_fleet
from fleet.models import FleetMetrics, JobSummary
from fleet.normalize import iso_timestamp, normalize_job
from fleet.sources import JobSource, LiveJobSource, SyntheticJobSource

logger = logging.getLogger(__name__)

SYNTHETIC_WARNING = "Using mock data - check Jenkins configuration"


@dataclass(frozen=True)
class FleetSnapshot:
    jobs: tuple[JobSummary, ...]
    synthetic: bool
    now_ms: int
    warning: str | None = None

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def last_sync(self) -> str:
        return iso_timestamp(self.now_ms)

    def metrics(self, active_window_days: int = 7) -> FleetMetrics:
        return aggregate_fleet(self.jobs, active_window_days)


def current_ms() -> int:
    return int(time.time() * 1000)


def is_upstream_unreachable(exc: Exception) -> bool:
    """True for the failures that switch the dashboard to synthetic data."""
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code == 401
    return isinstance(exc, (ConnectionError, requests.ConnectionError))


def summarize(source: JobSource, settings: Settings, now_ms: int) -> tuple[JobSummary, ...]:
    rules = settings.rules
    return tuple(
        normalize_job(raw, source.base_url, rules, now_ms, settings.build_history_limit)
        for raw in source.fetch_raw_jobs()
    )


def load_fleet(
    settings: Settings,
    now_ms: int | None = None,
    allow_synthetic: bool = True,
    source: JobSource | None = None,
) -> FleetSnapshot:
    """Walk Jenkins and normalise every job, falling back to synthetic data
    when *allow_synthetic* is set and the controller cannot be reached.
    """
    now_ms = now_ms if now_ms is not None else current_ms()
    try:
        live = source or LiveJobSource(settings)
        jobs = summarize(live, settings, now_ms)
        logger.info("Fetched %d jobs from %s", len(jobs), live.base_url)
        return FleetSnapshot(jobs=jobs, synthetic=live.synthetic, now_ms=now_ms)
    except (ConnectionError, requests.ConnectionError, requests.HTTPError) as exc:
        if not allow_synthetic or not is_upstream_unreachable(exc):
            raise
        logger.warning("Falling back to synthetic data due to Jenkins connection issues: %s", exc)

    fallback = SyntheticJobSource(settings.synthetic_job_count, settings.synthetic_seed, now_ms)
    jobs = summarize(fallback, settings, now_ms)
    return FleetSnapshot(jobs=jobs, synthetic=True, now_ms=now_ms, warning=SYNTHETIC_WARNING)
