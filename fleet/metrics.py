"""Fleet-wide reduction of normalised jobs."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from fleet.models import FleetMetrics, JobSummary
from fleet.normalize import percentage, round_half_up


def aggregate_fleet(jobs: Iterable[JobSummary], active_window_days: int = 7) -> FleetMetrics:
    """Count status/activity/classification buckets in one pass.

    Rates are percentages of the total job count; avg_build_duration is the
    mean last-build duration in whole minutes over jobs that have one.  A job
    is active when its last build started less than *active_window_days* ago
    (floor(age / day) < N is the same test as age < N days).
    """
    statuses: Counter[str] = Counter()
    total = active = disabled = tests = 0
    duration_sum = duration_jobs = 0

    for job in jobs:
        total += 1
        statuses[job.last_build_status] += 1
        if job.is_disabled:
            disabled += 1
        if job.is_test_job:
            tests += 1
        if job.last_build_duration > 0:
            duration_sum += job.last_build_duration
            duration_jobs += 1
        if job.days_since_last_build is not None and job.days_since_last_build < active_window_days:
            active += 1

    avg_minutes = (
        int(round_half_up(duration_sum / duration_jobs / 60_000)) if duration_jobs else 0
    )
    return FleetMetrics(
        total_jobs=total,
        success_rate=percentage(statuses["SUCCESS"], total),
        failure_rate=percentage(statuses["FAILURE"], total),
        unstable_rate=percentage(statuses["UNSTABLE"], total),
        aborted_rate=percentage(statuses["ABORTED"], total),
        avg_build_duration=avg_minutes,
        active_jobs=active,
        disabled_jobs=disabled,
        test_jobs=tests,
    )
