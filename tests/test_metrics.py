"""Tests for the fleet-wide aggregation."""

from __future__ import annotations

from fleet.config import Settings
from fleet.metrics import aggregate_fleet
from fleet.normalize import MS_PER_DAY, normalize_job

NOW = 1_700_000_000_000
RULES = Settings().rules


def _summary(name: str, result: str | None, age_days: int | None, duration: int = 120_000,
             buildable: bool = True):
    last = None
    if age_days is not None:
        last = {"number": 1, "result": result, "timestamp": NOW - age_days * MS_PER_DAY,
                "duration": duration}
    raw = {"name": name, "url": f"https://ci/job/{name}/", "buildable": buildable, "lastBuild": last}
    return normalize_job(raw, "https://ci", RULES, NOW)


class TestAggregateFleet:
    def test_empty_fleet_has_zero_rates(self):
        m = aggregate_fleet([])
        assert m.total_jobs == 0
        assert m.success_rate == 0
        assert m.failure_rate == 0
        assert m.unstable_rate == 0
        assert m.aborted_rate == 0
        assert m.avg_build_duration == 0
        assert m.active_jobs == 0

    def test_status_rates(self):
        jobs = [
            _summary("a", "SUCCESS", 1),
            _summary("b", "SUCCESS", 1),
            _summary("c", "FAILURE", 1),
            _summary("d", "UNSTABLE", 1),
            _summary("e", "ABORTED", 1),
            _summary("f", None, None),
        ]
        m = aggregate_fleet(jobs)
        assert m.total_jobs == 6
        assert m.success_rate == 33.3
        assert m.failure_rate == 16.7
        assert m.unstable_rate == 16.7
        assert m.aborted_rate == 16.7

    def test_avg_build_duration_in_minutes(self):
        jobs = [
            _summary("a", "SUCCESS", 1, duration=60_000),
            _summary("b", "SUCCESS", 1, duration=180_000),
            _summary("never", None, None),
        ]
        assert aggregate_fleet(jobs).avg_build_duration == 2

    def test_active_window(self):
        jobs = [
            _summary("fresh", "SUCCESS", 0),
            _summary("week-old", "SUCCESS", 6),
            _summary("stale", "SUCCESS", 7),
            _summary("never", None, None),
        ]
        assert aggregate_fleet(jobs).active_jobs == 2
        assert aggregate_fleet(jobs, active_window_days=30).active_jobs == 3

    def test_disabled_and_test_counts(self):
        jobs = [
            _summary("demo-pipeline", "SUCCESS", 1),
            _summary("latest-release", "SUCCESS", 1),
            _summary("old", "SUCCESS", 1, buildable=False),
        ]
        m = aggregate_fleet(jobs)
        assert m.test_jobs == 1
        assert m.disabled_jobs == 1

    def test_to_dict_keys(self):
        data = aggregate_fleet([_summary("a", "SUCCESS", 1)]).to_dict()
        assert set(data) == {
            "totalJobs", "successRate", "failureRate", "unstableRate", "abortedRate",
            "avgBuildDuration", "activeJobs", "disabledJobs", "testJobs",
        }
