"""
Name- and URL-based classification of Jenkins entries.

Pure functions only: keyword lists are supplied by the caller (see
fleet.config.Settings.rules), nothing here reads configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

FOLDER_CLASSES = frozenset({
    "com.cloudbees.hudson.plugins.folder.Folder",
    "jenkins.branch.OrganizationFolder",
    "org.jenkinsci.plugins.workflow.multibranch.WorkflowMultiBranchProject",
})


def is_folder(entry: dict) -> bool:
    """True when a tree entry is a container (folder) rather than a buildable job."""
    return entry.get("_class", "") in FOLDER_CLASSES


@dataclass(frozen=True)
class ClassificationRules:
    test_keywords: tuple[str, ...] = ()
    exclude_words: tuple[str, ...] = ()

    def is_test_job(self, job_name: str) -> bool:
        """A job is a test job when its name contains a test keyword and no
        exclude word.  An exclude word always wins: 'test-contest' is not a
        test job when 'contest' is excluded.
        """
        if not job_name:
            return False
        name = job_name.lower()
        if any(word and word in name for word in self.exclude_words):
            return False
        return any(keyword and keyword in name for keyword in self.test_keywords)


def extract_folder(url: str) -> str:
    """Folder path of a job from its Jenkins URL.

    'https://ci/job/teamA/job/sub/job/build/' -> 'teamA/sub'
    'https://ci/job/build/'                    -> '/'
    """
    if not url:
        return "/"
    segments = [seg.strip("/") for seg in url.split("/job/")[1:]]
    folder = "/".join(seg for seg in segments[:-1] if seg)
    return unquote(folder) if folder else "/"
