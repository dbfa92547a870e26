"""
Depth-first flattening of a Jenkins folder tree into a list of leaf jobs.

The walker only needs a callable that maps an API path ('' for the root,
'/job/teamA/job/sub' below it) to that level's raw ``jobs`` entries, so it
can be driven by JenkinsClient.get_folder_listing or by a plain dict in tests.
"""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import quote

from fleet.classify import is_folder

logger = logging.getLogger(__name__)

FetchListing = Callable[[str], list[dict]]


def child_path(path: str, name: str) -> str:
    return f"{path}/job/{quote(name, safe='')}"


def walk_jobs(fetch_listing: FetchListing, max_depth: int = 20) -> list[dict]:
    """Return every non-folder entry reachable from the root, in response order.

    - The root listing is fetched without a guard: if Jenkins is unreachable
      there, the exception propagates to the caller.
    - A failing subfolder is logged and contributes no jobs.
    - Folders nested deeper than *max_depth* are skipped with a warning, and
      a path already visited is never fetched twice.
    """
    jobs: list[dict] = []
    visited: set[str] = {""}

    def _descend(entries: list[dict], path: str, depth: int) -> None:
        for entry in entries or ():
            if not isinstance(entry, dict):
                logger.warning("Skipping malformed entry under %s: %r", path or "(root)", entry)
                continue
            if not is_folder(entry):
                jobs.append(entry)
                continue

            sub_path = child_path(path, str(entry.get("name") or ""))
            if sub_path in visited:
                logger.warning("Folder %s already visited; skipping", sub_path)
                continue
            if depth + 1 > max_depth:
                logger.warning(
                    "Folder %s exceeds max depth %d; skipping", sub_path, max_depth,
                )
                continue
            visited.add(sub_path)

            try:
                sub_entries = fetch_listing(sub_path)
            except Exception as exc:
                logger.warning("Error fetching jobs from %s: %s", sub_path, exc)
                continue
            _descend(sub_entries, sub_path, depth + 1)

    _descend(fetch_listing(""), "", 0)
    logger.debug("Folder walk found %d jobs across %d folders", len(jobs), len(visited))
    return jobs
