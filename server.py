"""
Jenkins Fleet Dashboard server

Mirrors a Jenkins controller's job inventory.  Every request walks the folder
tree, normalises each job and derives fleet metrics; nothing is stored.

Surfaces:  JSON routes under /api/... for the dashboard UI, plus MCP tools
           (list_jobs, fleet_overview, sync_jobs, cleanup_report) at /mcp.
Transport: Streamable HTTP by default (MCP_TRANSPORT=http, host 0.0.0.0, port 8000).
           Set MCP_TRANSPORT=stdio to serve the MCP tools over stdio only.
Logs:      All application logs go to stderr.
Fallback:  When Jenkins is unreachable the read endpoints serve synthetic data
           and add a "warning" field to the response.
"""

import csv
import io
import logging
import os
import sys
from datetime import datetime, timezone

import requests
from fastmcp import FastMCP
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fleet import analytics, dashboard
from fleet.config import JenkinsConfigError, load_settings
from fleet.dashboard import FleetSnapshot
from fleet.models import JobSummary

logging.basicConfig(
    stream=sys.stderr,
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("jenkins-dashboard")

settings = load_settings()

mcp = FastMCP(
    "Jenkins Fleet Dashboard",
    instructions=(
        "You are a Jenkins fleet reporting assistant with read-only access. "
        "Use fleet_overview for success/failure rates, active, disabled and test job counts. "
        "Use list_jobs to browse jobs, optionally narrowed to a folder or a last-build status. "
        "Use cleanup_report to find test, inactive and disabled jobs worth deleting. "
        "sync_jobs re-walks Jenkins and only confirms how many jobs were found. "
        "If a report says it is built from mock data, Jenkins could not be reached."
    ),
)


def _handle_error(exc: Exception, context: str) -> str:
    """Convert common exceptions into readable messages."""
    if isinstance(exc, JenkinsConfigError):
        return f"[{context}] {exc}"
    if isinstance(exc, requests.HTTPError):
        status = exc.response.status_code
        if status == 401:
            return f"[{context}] Authentication failed (401). Check JENKINS_USER and JENKINS_TOKEN."
        if status == 403:
            return f"[{context}] Forbidden (403). The Jenkins user cannot read the job tree."
        if status == 404:
            return f"[{context}] Not found (404). Verify JENKINS_URL."
        return f"[{context}] Jenkins API error {status}: {exc.response.text[:300]}"
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return f"[{context}] {exc}"
    return f"[{context}] Unexpected error: {exc}"


def _error_response(exc: Exception, context: str, message: str) -> JSONResponse:
    logger.error("%s failed: %s", context, exc)
    return JSONResponse(
        {"success": False, "message": message, "error": _handle_error(exc, context)},
        status_code=500,
    )


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def _with_warning(payload: dict, snapshot: FleetSnapshot) -> dict:
    if snapshot.warning:
        payload["warning"] = snapshot.warning
    return payload


def _jobs_payload(snapshot: FleetSnapshot) -> dict:
    if snapshot.synthetic:
        message = f"Mock data: {snapshot.total} Jenkins jobs (Jenkins connection failed)"
    else:
        message = f"Retrieved {snapshot.total} Jenkins jobs from all folders"
    return _with_warning({
        "success": True,
        "data": [job.to_dict() for job in snapshot.jobs],
        "message": message,
        "total": snapshot.total,
        "lastSync": snapshot.last_sync,
    }, snapshot)


def _overview_payload(snapshot: FleetSnapshot) -> dict:
    data = snapshot.metrics(settings.active_window_days).to_dict()
    data["lastSyncTime"] = (
        "Mock data - check Jenkins configuration" if snapshot.synthetic else snapshot.last_sync
    )
    return _with_warning({"success": True, "data": data}, snapshot)


_CSV_HEADERS = ("Name", "Folder", "Status", "Last Build", "Duration", "URL")


def _jobs_csv(jobs: tuple[JobSummary, ...]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(_CSV_HEADERS)
    for job in jobs:
        writer.writerow((job.name, job.folder, job.status, job.last_build, job.duration, job.url))
    return buf.getvalue()


_ADMIN_USER = {
    "id": "1",
    "email": "admin@example.com",
    "name": "Admin User",
    "role": "ADMIN",
}


# ---------------------------------------------------------------------------
# Dashboard JSON routes
# ---------------------------------------------------------------------------


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()})


@mcp.custom_route("/api/jenkins/jobs", methods=["GET"])
async def jobs_endpoint(request: Request) -> JSONResponse:
    """All jobs from every folder, normalised."""
    try:
        snapshot = await run_in_threadpool(dashboard.load_fleet, settings)
    except Exception as exc:
        return _error_response(exc, "jobs", "Failed to fetch Jenkins data")
    return JSONResponse(_jobs_payload(snapshot))


@mcp.custom_route("/api/jenkins/jobs/export", methods=["GET"])
async def jobs_export(request: Request) -> Response:
    """The job list as CSV, one row per job."""
    try:
        snapshot = await run_in_threadpool(dashboard.load_fleet, settings)
    except Exception as exc:
        return _error_response(exc, "export", "Failed to export Jenkins jobs")
    filename = f"jenkins-pipelines-{datetime.now(timezone.utc):%Y-%m-%d}.csv"
    return Response(
        _jobs_csv(snapshot.jobs),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@mcp.custom_route("/api/jenkins/sync", methods=["POST"])
async def sync_endpoint(request: Request) -> JSONResponse:
    """Re-walk Jenkins; only the job count is reported back.  No mock fallback."""
    try:
        snapshot = await run_in_threadpool(
            dashboard.load_fleet, settings, allow_synthetic=False,
        )
    except Exception as exc:
        return _error_response(exc, "sync", "Failed to sync from Jenkins")
    logger.info("Synced %d jobs from Jenkins", snapshot.total)
    return JSONResponse({
        "success": True,
        "message": f"Successfully synced {snapshot.total} jobs from Jenkins (including all folders)",
        "total": snapshot.total,
        "lastSync": snapshot.last_sync,
    })


@mcp.custom_route("/api/dashboard/overview", methods=["GET"])
async def overview_endpoint(request: Request) -> JSONResponse:
    try:
        snapshot = await run_in_threadpool(dashboard.load_fleet, settings)
    except Exception as exc:
        return _error_response(exc, "overview", "Failed to fetch dashboard data")
    return JSONResponse(_overview_payload(snapshot))


@mcp.custom_route("/api/dashboard/widgets", methods=["GET"])
async def widgets_endpoint(request: Request) -> JSONResponse:
    return JSONResponse({
        "success": True,
        "data": [
            {"id": "1", "name": "Job Status", "type": "chart", "config": {}},
            {"id": "2", "name": "Build Duration", "type": "chart", "config": {}},
        ],
    })


@mcp.custom_route("/api/analytics/cleanup", methods=["GET"])
async def cleanup_endpoint(request: Request) -> JSONResponse:
    try:
        snapshot = await run_in_threadpool(dashboard.load_fleet, settings)
    except Exception as exc:
        return _error_response(exc, "cleanup", "Failed to build cleanup insights")
    data = analytics.cleanup_report(snapshot.jobs, settings.inactive_threshold_days)
    return JSONResponse(_with_warning({"success": True, "data": data}, snapshot))


@mcp.custom_route("/api/analytics/performance", methods=["GET"])
async def performance_endpoint(request: Request) -> JSONResponse:
    try:
        snapshot = await run_in_threadpool(dashboard.load_fleet, settings)
    except Exception as exc:
        return _error_response(exc, "performance", "Failed to build performance analytics")
    data = analytics.performance_report(snapshot.jobs)
    return JSONResponse(_with_warning({"success": True, "data": data}, snapshot))


@mcp.custom_route("/api/auth/login", methods=["POST"])
async def login_endpoint(request: Request) -> JSONResponse:
    """Stub login: every caller is the fixed admin user."""
    return JSONResponse({"success": True, "token": "mock-token", "user": _ADMIN_USER})


@mcp.custom_route("/api/auth/me", methods=["GET"])
async def me_endpoint(request: Request) -> JSONResponse:
    return JSONResponse({
        "success": True,
        "user": {
            **_ADMIN_USER,
            "preferences": {"theme": "light", "timezone": "UTC", "refreshRate": 300},
        },
    })


@mcp.custom_route("/api/webhooks/jenkins", methods=["POST"])
async def jenkins_webhook(request: Request) -> JSONResponse:
    """Placeholder: the payload is logged and acknowledged, nothing else."""
    body = await request.body()
    logger.info("Jenkins webhook received (%d bytes)", len(body))
    return JSONResponse({"success": True, "message": "Webhook received"})


# ---------------------------------------------------------------------------
# MCP tools
# ---------------------------------------------------------------------------


_LIST_HARD_CAP = 200
_CLEANUP_SHOWN = 10


def _source_note(snapshot: FleetSnapshot) -> str:
    if snapshot.synthetic:
        return f"[MOCK DATA] {snapshot.warning}\n"
    return ""


def _folder_scope(folder: str) -> str:
    """'teamA/' -> 'teamA'; any run of bare slashes names the root folder '/'."""
    folder = folder.strip()
    if folder and not folder.strip("/"):
        return "/"
    return folder.strip("/")


def _filter_jobs(jobs, folder: str = "", status: str = "") -> list[JobSummary]:
    folder = _folder_scope(folder)
    status = status.strip().upper()
    selected = []
    for job in jobs:
        if folder == "/" and job.folder != "/":
            continue
        if folder and job.folder != folder and not job.folder.startswith(folder + "/"):
            continue
        if status and job.last_build_status != status:
            continue
        selected.append(job)
    return selected


def _render_job_table(snapshot: FleetSnapshot, folder: str = "", status: str = "") -> str:
    jobs = _filter_jobs(snapshot.jobs, folder, status)
    scope = _folder_scope(folder) or "(all folders)"
    if status:
        scope += f", status {status.strip().upper()}"
    if not jobs:
        return f"{_source_note(snapshot)}No jobs found in {scope}."

    lines = [f"{_source_note(snapshot)}Jobs in {scope} ({len(jobs)} of {snapshot.total}):\n"]
    lines.append(f"  {'Name':<40} {'Folder':<25} {'Status':<12} {'Success':>8}  {'Last Build'}")
    lines.append(f"  {'-'*40} {'-'*25} {'-'*12} {'-'*8}  {'-'*15}")
    for job in jobs:
        flags = ""
        if job.is_disabled:
            flags += " [disabled]"
        if job.is_test_job:
            flags += " [test]"
        lines.append(
            f"  {job.name:<40} {job.folder:<25} {job.last_build_status:<12} "
            f"{job.success_rate:>7.1f}%  {job.last_build}{flags}"
        )

    if len(lines) > _LIST_HARD_CAP:
        lines = lines[:_LIST_HARD_CAP]
        lines.append(f"[Output truncated at {_LIST_HARD_CAP} lines; narrow by folder or status]")
    return "\n".join(lines)


def _render_overview(snapshot: FleetSnapshot) -> str:
    m = snapshot.metrics(settings.active_window_days)
    lines = [
        f"{_source_note(snapshot)}=== FLEET OVERVIEW ({snapshot.last_sync}) ===",
        f"Total jobs:      {m.total_jobs}",
        f"Success rate:    {m.success_rate}%",
        f"Failure rate:    {m.failure_rate}%",
        f"Unstable rate:   {m.unstable_rate}%",
        f"Aborted rate:    {m.aborted_rate}%",
        f"Avg build time:  {m.avg_build_duration} min",
        f"Active jobs:     {m.active_jobs} (built in the last {settings.active_window_days} days)",
        f"Disabled jobs:   {m.disabled_jobs}",
        f"Test jobs:       {m.test_jobs}",
    ]
    return "\n".join(lines)


def _render_cleanup(report: dict, note: str = "") -> str:
    summary = report["summary"]
    sections = [
        f"{note}=== CLEANUP CANDIDATES ===\n"
        f"{summary['totalTestJobs']} test, {summary['totalInactiveJobs']} inactive "
        f"(> {summary['inactiveThresholdDays']} days), {summary['totalDisabledJobs']} disabled. "
        f"Potential savings: {summary['potentialSavings']}"
    ]
    for title, key, total_key in (
        ("TEST JOBS", "testJobs", "totalTestJobs"),
        ("INACTIVE JOBS", "inactiveJobs", "totalInactiveJobs"),
        ("DISABLED JOBS", "disabledJobs", "totalDisabledJobs"),
    ):
        entries = report[key]
        if not entries:
            continue
        block = [f"\n=== {title} ({summary[total_key]}) ==="]
        for e in entries[:_CLEANUP_SHOWN]:
            block.append(f"  {e['name']:<40} {e['lastBuild']:<15} {e['recommendation']}")
        if summary[total_key] > _CLEANUP_SHOWN:
            block.append(f"  ... and {summary[total_key] - _CLEANUP_SHOWN} more")
        sections.append("\n".join(block))
    return "\n".join(sections)


@mcp.tool
def list_jobs(folder: str = "", status: str = "") -> str:
    """List jobs across all Jenkins folders with status and success rate.

    Args:
        folder: Only jobs in this folder or its subfolders (empty = everything,
            "/" = root-level jobs only).
        status: Only jobs whose last build has this status (SUCCESS, FAILURE, UNSTABLE,
            ABORTED, IN_PROGRESS, NOT_BUILT).
    """
    try:
        snapshot = dashboard.load_fleet(settings)
    except Exception as exc:
        return _handle_error(exc, "list_jobs")
    return _render_job_table(snapshot, folder, status)


@mcp.tool
def fleet_overview() -> str:
    """Fleet-wide rates, average build time, active/disabled/test job counts."""
    try:
        snapshot = dashboard.load_fleet(settings)
    except Exception as exc:
        return _handle_error(exc, "fleet_overview")
    return _render_overview(snapshot)


@mcp.tool
def sync_jobs() -> str:
    """Re-walk Jenkins and report how many jobs were found.  Stores nothing."""
    try:
        snapshot = dashboard.load_fleet(settings, allow_synthetic=False)
    except Exception as exc:
        return _handle_error(exc, "sync_jobs")
    return f"Successfully synced {snapshot.total} jobs from Jenkins at {snapshot.last_sync}."


@mcp.tool
def cleanup_report() -> str:
    """Test, inactive and disabled jobs with a deletion recommendation for each."""
    try:
        snapshot = dashboard.load_fleet(settings)
    except Exception as exc:
        return _handle_error(exc, "cleanup_report")
    report = analytics.cleanup_report(snapshot.jobs, settings.inactive_threshold_days)
    return _render_cleanup(report, _source_note(snapshot))


def main() -> None:
    import socket

    transport = os.getenv("MCP_TRANSPORT", "http")
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8000"))

    if transport == "stdio":
        mcp.run(transport="stdio", show_banner=False)
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as _s:
            try:
                _s.connect(("8.8.8.8", 80))
                external_ip = _s.getsockname()[0]
            except OSError:
                external_ip = "127.0.0.1"

        print(
            f"Jenkins Fleet Dashboard starting\n"
            f"  API:      http://127.0.0.1:{port}/api/jenkins/jobs\n"
            f"  MCP:      http://127.0.0.1:{port}/mcp\n"
            f"  Network:  http://{external_ip}:{port}",
            file=sys.stderr,
        )
        mcp.run(transport=transport, host=host, port=port, show_banner=False)


if __name__ == "__main__":
    main()
