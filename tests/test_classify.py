"""Tests for test-job detection and folder extraction."""

from __future__ import annotations

import pytest

from fleet.classify import ClassificationRules, extract_folder, is_folder
from fleet.config import Settings

DEFAULT_RULES = Settings().rules


class TestIsTestJob:
    @pytest.mark.parametrize("name", [
        "demo-pipeline", "integration-test", "Nightly-TESTING", "tst-api", "trial-run",
    ])
    def test_keyword_matches(self, name):
        assert DEFAULT_RULES.is_test_job(name) is True

    @pytest.mark.parametrize("name", ["backend-build", "deploy-prod", ""])
    def test_no_keyword(self, name):
        assert DEFAULT_RULES.is_test_job(name) is False

    def test_latest_release_excluded(self):
        assert DEFAULT_RULES.is_test_job("latest-release") is False

    def test_exclude_word_wins_over_keyword(self):
        assert DEFAULT_RULES.is_test_job("test-contest") is False

    def test_custom_lists(self):
        rules = ClassificationRules(test_keywords=("qa",), exclude_words=("prod",))
        assert rules.is_test_job("qa-smoke") is True
        assert rules.is_test_job("qa-prod-smoke") is False
        assert rules.is_test_job("unit-test") is False

    def test_empty_exclude_list(self):
        rules = ClassificationRules(test_keywords=("test",), exclude_words=())
        assert rules.is_test_job("latest-release") is True


class TestExtractFolder:
    def test_root_job(self):
        assert extract_folder("https://ci.example.com/job/build/") == "/"

    def test_single_folder(self):
        assert extract_folder("https://ci.example.com/job/teamA/job/build/") == "teamA"

    def test_nested_folders(self):
        url = "https://ci.example.com/job/teamA/job/sub/job/build/"
        assert extract_folder(url) == "teamA/sub"

    def test_encoded_segments_decoded(self):
        url = "https://ci.example.com/job/My%20Team/job/build/"
        assert extract_folder(url) == "My Team"

    def test_empty_url(self):
        assert extract_folder("") == "/"

    def test_url_without_job_marker(self):
        assert extract_folder("https://ci.example.com/") == "/"


class TestIsFolder:
    def test_folder_class(self):
        assert is_folder({"_class": "com.cloudbees.hudson.plugins.folder.Folder"})

    def test_job_class(self):
        assert not is_folder({"_class": "hudson.model.FreeStyleProject"})

    def test_missing_class(self):
        assert not is_folder({})
