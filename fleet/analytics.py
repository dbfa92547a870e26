"""Cleanup and performance summaries derived from a normalised job list."""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from fleet.models import JobSummary
from fleet.normalize import round_half_up

_CLEANUP_LIST_CAP = 20
_PERFORMANCE_TOP_FOLDERS = 5


def _age(job: JobSummary) -> int | None:
    return job.days_since_last_build


def _test_recommendation(job: JobSummary) -> str:
    age = _age(job)
    if age is None or age > 30:
        return "Safe to delete"
    return "Review before deletion"


def _inactive_recommendation(job: JobSummary) -> str:
    return "Archive and delete" if (_age(job) or 0) > 120 else "Safe to delete"


def _disabled_recommendation(job: JobSummary) -> str:
    age = _age(job)
    if age is None or age > 45:
        return "Safe to delete"
    return "Review before deletion"


def _entry(job: JobSummary, recommendation: str) -> dict:
    return {
        "name": job.name,
        "folder": job.folder,
        "url": job.url,
        "lastBuild": job.last_build,
        "daysSinceLastBuild": job.days_since_last_build,
        "recommendation": recommendation,
    }


def cleanup_report(jobs: Sequence[JobSummary], inactive_threshold_days: int = 60) -> dict:
    """Jobs worth reviewing for deletion: test jobs, inactive jobs, disabled jobs.

    Each list is capped for display; the summary carries the full counts.
    """
    test_jobs = [j for j in jobs if j.is_test_job]
    inactive = sorted(
        (j for j in jobs if j.days_since_last_build is not None
         and j.days_since_last_build > inactive_threshold_days),
        key=lambda j: j.days_since_last_build,
        reverse=True,
    )
    disabled = [j for j in jobs if j.is_disabled]

    total = len(test_jobs) + len(inactive) + len(disabled)
    return {
        "testJobs": [_entry(j, _test_recommendation(j)) for j in test_jobs[:_CLEANUP_LIST_CAP]],
        "inactiveJobs": [_entry(j, _inactive_recommendation(j)) for j in inactive[:_CLEANUP_LIST_CAP]],
        "disabledJobs": [_entry(j, _disabled_recommendation(j)) for j in disabled[:_CLEANUP_LIST_CAP]],
        "summary": {
            "totalTestJobs": len(test_jobs),
            "totalInactiveJobs": len(inactive),
            "totalDisabledJobs": len(disabled),
            "inactiveThresholdDays": inactive_threshold_days,
            "potentialSavings": f"{int(total * 0.5)} jobs",
        },
    }


def performance_report(jobs: Sequence[JobSummary], top: int = _PERFORMANCE_TOP_FOLDERS) -> dict:
    """Per-folder build duration, success rate and failure count for the largest folders.

    The three series line up with ``folders``: buildDurations is the mean of
    the jobs' average build durations in minutes, successRates the mean job
    success rate, failureTrends the summed failure count over the history
    window.
    """
    by_folder: dict[str, list[JobSummary]] = defaultdict(list)
    for job in jobs:
        by_folder[job.folder].append(job)

    largest = sorted(by_folder.items(), key=lambda kv: (-len(kv[1]), kv[0]))[:top]

    folders, durations, rates, failures = [], [], [], []
    for folder, members in largest:
        timed = [j.avg_build_duration for j in members if j.avg_build_duration > 0]
        built = [j.success_rate for j in members if j.total_builds > 0]
        folders.append(folder)
        durations.append(
            round_half_up(sum(timed) / len(timed) / 60_000, 1) if timed else 0.0
        )
        rates.append(round_half_up(sum(built) / len(built), 1) if built else 0.0)
        failures.append(sum(j.failure_count for j in members))

    return {
        "folders": folders,
        "buildDurations": durations,
        "successRates": rates,
        "failureTrends": failures,
    }
