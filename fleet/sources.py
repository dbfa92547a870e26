"""
Where raw job records come from.

Both sources return Jenkins-shaped job entries (the same dicts a folder
listing contains), so the normaliser and aggregator never know whether they
are looking at a live controller or the synthetic fallback.
"""

from __future__ import annotations

import logging
import random
from typing import Protocol

from fleet.config import Settings
from fleet.folder_walker import walk_jobs
from fleet.jenkins_api import JenkinsClient
from fleet.normalize import MS_PER_DAY

logger = logging.getLogger(__name__)

SYNTHETIC_BASE_URL = "https://jenkins.example.com"


class JobSource(Protocol):
    base_url: str
    synthetic: bool

    def fetch_raw_jobs(self) -> list[dict]: ...


class LiveJobSource:
    """Walks the configured Jenkins controller."""

    synthetic = False

    def __init__(self, settings: Settings, client: JenkinsClient | None = None):
        self._client = client or JenkinsClient(settings)
        self._max_depth = settings.folder_max_depth
        self.base_url = self._client.base_url

    def fetch_raw_jobs(self) -> list[dict]:
        return walk_jobs(self._client.get_folder_listing, max_depth=self._max_depth)


_RESULTS = ("SUCCESS", "FAILURE", "UNSTABLE", "ABORTED", None)
_RESULT_WEIGHTS = (70, 14, 8, 3, 5)
_COLORS = {
    "SUCCESS": "blue", "FAILURE": "red", "UNSTABLE": "yellow",
    "ABORTED": "aborted", None: "notbuilt",
}
_JOB_TYPES = ("build", "test", "deploy", "integration", "release", "hotfix", "feature")
_PREFIXES = (
    "frontend", "backend", "api", "mobile", "web", "service",
    "microservice", "database", "infrastructure",
)
_PIPELINE_CLASS = "org.jenkinsci.plugins.workflow.job.WorkflowJob"


class SyntheticJobSource:
    """Deterministic stand-in data used when Jenkins cannot be reached.

    Jobs are spread over one folder per prefix and carry a plausible build
    history; the same seed and *now_ms* always produce the same records.
    """

    synthetic = True
    base_url = SYNTHETIC_BASE_URL

    def __init__(self, count: int, seed: int, now_ms: int):
        self.count = max(1, count)
        self.seed = seed
        self.now_ms = now_ms

    def fetch_raw_jobs(self) -> list[dict]:
        rng = random.Random(self.seed)
        return [self._make_job(rng, i) for i in range(1, self.count + 1)]

    def _make_job(self, rng: random.Random, index: int) -> dict:
        prefix = rng.choice(_PREFIXES)
        name = f"{prefix}-{rng.choice(_JOB_TYPES)}-{index}"
        url = f"{SYNTHETIC_BASE_URL}/job/{prefix}/job/{name}/"
        last_result = rng.choices(_RESULTS, weights=_RESULT_WEIGHTS)[0]

        job = {
            "_class": _PIPELINE_CLASS,
            "name": name,
            "url": url,
            "buildable": rng.random() > 0.05,
            "color": _COLORS[last_result],
            "inQueue": False,
            "lastBuild": None,
            "lastSuccessfulBuild": None,
            "lastFailedBuild": None,
            "builds": [],
        }
        if last_result is None:
            return job

        # Newest first, like Jenkins
        age_ms = rng.randint(60_000, 200 * MS_PER_DAY)
        number = rng.randint(5, 400)
        builds = []
        ts = self.now_ms - age_ms
        for offset in range(rng.randint(3, 20)):
            result = last_result if offset == 0 else rng.choices(_RESULTS[:4], weights=_RESULT_WEIGHTS[:4])[0]
            builds.append({
                "number": number - offset,
                "timestamp": ts,
                "result": result,
                "duration": rng.randint(60, 1800) * 1000,
            })
            ts -= rng.randint(1, 72) * 3_600_000

        first = builds[0]
        job["lastBuild"] = {**first, "url": f"{url}{first['number']}/"}
        job["lastSuccessfulBuild"] = next((b for b in builds if b["result"] == "SUCCESS"), None)
        job["lastFailedBuild"] = next((b for b in builds if b["result"] == "FAILURE"), None)
        job["builds"] = builds
        return job
