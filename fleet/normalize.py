"""
Turn one raw Jenkins job record into a JobSummary.

Pure: no network, no clock.  The caller passes ``now_ms`` so that
normalising the same record twice gives identical results.  Missing or
malformed fields fall back to their empty/zero form instead of failing.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from fleet.classify import ClassificationRules, extract_folder
from fleet.models import JobSummary

MS_PER_DAY = 86_400_000

_SUCCESS_RESULTS = frozenset({"SUCCESS"})
_FAILURE_RESULTS = frozenset({"FAILURE", "UNSTABLE", "ABORTED"})


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round .5 away from zero for positive values (round() is banker's rounding)."""
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def percentage(count: int, total: int) -> float:
    """count/total as a percentage with one decimal; 0.0 for an empty total."""
    if total <= 0:
        return 0.0
    return round_half_up(count / total * 100, 1)


def _as_int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def iso_timestamp(ts_ms: int) -> str | None:
    """Epoch milliseconds -> '2024-01-02T03:04:05.678Z', None when out of range."""
    try:
        dt = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def format_duration(duration_ms: int) -> str:
    """125000 -> '2m 5s'; 0 -> 'N/A'."""
    if not duration_ms:
        return "N/A"
    minutes = duration_ms // 60_000
    seconds = (duration_ms % 60_000) // 1000
    return f"{minutes}m {seconds}s"


def format_time_ago(ts_ms: int, now_ms: int) -> str:
    if not ts_ms:
        return "Never built"
    minutes = (now_ms - ts_ms) // 60_000
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "Just now"


def last_build_status(last_build: dict | None) -> str:
    if not last_build:
        return "NOT_BUILT"
    return last_build.get("result") or "IN_PROGRESS"


def _mean(values: list[int]) -> int:
    if not values:
        return 0
    return int(round_half_up(sum(values) / len(values)))


def build_history_stats(builds: list[dict]) -> dict:
    """Aggregate a window of build records.

    Every build counts towards total_builds; only builds with a positive
    duration feed the duration aggregates and the success/failure tally.
    """
    durations: list[int] = []
    successful: list[int] = []
    failed: list[int] = []

    for build in builds:
        build = _as_dict(build)
        duration = _as_int(build.get("duration"))
        if duration <= 0:
            continue
        durations.append(duration)
        result = build.get("result")
        if result in _SUCCESS_RESULTS:
            successful.append(duration)
        elif result in _FAILURE_RESULTS:
            failed.append(duration)

    total = len(builds)
    return {
        "total_builds": total,
        "success_count": len(successful),
        "failure_count": len(failed),
        "success_rate": percentage(len(successful), total),
        "avg_build_duration": _mean(durations),
        "avg_successful_duration": _mean(successful),
        "avg_failed_duration": _mean(failed),
        "min_build_duration": min(durations) if durations else 0,
        "max_build_duration": max(durations) if durations else 0,
        "total_build_duration": sum(durations),
    }


def normalize_job(
    raw: dict,
    base_url: str,
    rules: ClassificationRules,
    now_ms: int,
    history_limit: int | None = None,
) -> JobSummary:
    """Build the JobSummary for one raw job entry from a folder listing."""
    name = str(raw.get("name") or "")
    url = raw.get("url") or f"{base_url.rstrip('/')}/job/{name}"

    last = _as_dict(raw.get("lastBuild")) or None
    last_ok = _as_dict(raw.get("lastSuccessfulBuild"))
    last_failed = _as_dict(raw.get("lastFailedBuild"))

    builds = raw.get("builds")
    builds = builds if isinstance(builds, list) else []
    if history_limit is not None:
        builds = builds[:max(0, history_limit)]

    last_ts = _as_int((last or {}).get("timestamp"))
    ok_ts = _as_int(last_ok.get("timestamp"))
    failed_ts = _as_int(last_failed.get("timestamp"))
    last_duration = _as_int((last or {}).get("duration"))

    status = last_build_status(last)

    return JobSummary(
        id=name,
        name=name,
        url=url,
        type=raw.get("_class") or "",
        folder=extract_folder(url),
        last_build_status=status,
        is_disabled=not raw.get("buildable", False),
        last_build_date=iso_timestamp(last_ts) if last_ts else None,
        last_successful_date=iso_timestamp(ok_ts) if ok_ts else None,
        last_failed_date=iso_timestamp(failed_ts) if failed_ts else None,
        days_since_last_build=(now_ms - last_ts) // MS_PER_DAY if last_ts else None,
        last_build_duration=last_duration,
        last_successful_duration=_as_int(last_ok.get("duration")) if ok_ts else 0,
        last_failed_duration=_as_int(last_failed.get("duration")) if failed_ts else 0,
        is_test_job=rules.is_test_job(name),
        last_build_url=(last or {}).get("url") or "",
        last_build=format_time_ago(last_ts, now_ms),
        duration=format_duration(last_duration),
        color=raw.get("color") or "grey",
        last_build_number=_as_int((last or {}).get("number")),
        last_successful_build=last_ok.get("number") or None,
        last_failed_build=last_failed.get("number") or None,
        in_queue=bool(raw.get("inQueue", False)),
        buildable=raw.get("buildable") is not False,
        **build_history_stats(builds),
    )
