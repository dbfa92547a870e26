"""
Read-only wrapper around the Jenkins JSON tree API.

Methods raise meaningful exceptions rather than returning error values, so
callers (the walker, the dashboard pipeline, the HTTP routes) decide how to
surface the failure:

  - requests connection failures (refused, DNS) -> builtin ConnectionError
  - requests timeouts                           -> builtin TimeoutError
  - non-2xx responses                           -> requests.HTTPError

There is no retry policy: each call is attempted exactly once.
"""

from __future__ import annotations

import logging

import requests
import urllib3

from fleet.config import Settings

logger = logging.getLogger(__name__)

_BUILD_FIELDS = "number,timestamp,result,duration"


def jobs_tree(history_limit: int) -> str:
    """The tree= selector for one folder listing, builds window capped at history_limit."""
    limit = max(1, history_limit)
    return (
        "jobs[name,url,_class,buildable,color,inQueue,"
        "lastBuild[number,result,url,timestamp,duration],"
        "lastSuccessfulBuild[number,timestamp,duration],"
        "lastFailedBuild[number,timestamp,duration],"
        f"builds[{_BUILD_FIELDS}]{{0,{limit}}}]"
    )


class JenkinsClient:
    """Authenticated HTTP access to one Jenkins controller."""

    def __init__(self, settings: Settings):
        settings.require_credentials()
        self.base_url = settings.base_url
        self._auth = settings.auth
        self._timeout = settings.timeout
        self._verify_ssl = settings.verify_ssl
        self._tree = jobs_tree(settings.build_history_limit)
        if not self._verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _get(self, path: str, **kwargs) -> requests.Response:
        """Single HTTP GET against the controller, no retries."""
        url = f"{self.base_url}{path}"
        try:
            response = requests.get(
                url,
                auth=self._auth,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
                verify=self._verify_ssl,
                **kwargs,
            )
            response.raise_for_status()
            return response
        except requests.HTTPError as exc:
            logger.debug("Jenkins HTTP %s for %s", exc.response.status_code, url)
            raise
        except requests.Timeout:
            raise TimeoutError(
                f"Jenkins did not respond within {self._timeout} seconds ({url})."
            )
        except requests.ConnectionError:
            raise ConnectionError(
                f"Cannot reach Jenkins at {self.base_url}. "
                "Verify the server is running and JENKINS_URL is correct."
            )

    def get_folder_listing(self, path: str = "") -> list[dict]:
        """Return the raw ``jobs`` entries at an API path ('' for the root).

        *path* is already in API form ('/job/teamA/job/sub'); entries keep
        their ``_class`` so the walker can tell folders from jobs.
        """
        data = self._get(f"{path}/api/json", params={"tree": self._tree}).json()
        return data.get("jobs") or []
