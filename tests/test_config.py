"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from fleet.config import JenkinsConfigError, Settings, load_settings

_ENV_KEYS = (
    "JENKINS_URL", "JENKINS_BASE_URL", "JENKINS_USER", "JENKINS_TOKEN",
    "JENKINS_VERIFY_SSL", "JENKINS_TIMEOUT", "FOLDER_MAX_DEPTH", "BUILD_HISTORY_LIMIT",
    "TEST_JOB_KEYWORDS", "TEST_JOB_EXCLUDE_WORDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr("fleet.config.load_dotenv", lambda *args, **kwargs: False)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.jenkins_url == ""
        assert settings.timeout == 30
        assert settings.folder_max_depth == 20
        assert "test" in settings.test_keywords
        assert "latest" in settings.exclude_words

    def test_reads_environment(self, clean_env):
        clean_env.setenv("JENKINS_URL", "https://ci.example.com/")
        clean_env.setenv("JENKINS_USER", "bot")
        clean_env.setenv("JENKINS_TOKEN", "t")
        clean_env.setenv("JENKINS_VERIFY_SSL", "false")
        clean_env.setenv("BUILD_HISTORY_LIMIT", "25")
        clean_env.setenv("TEST_JOB_KEYWORDS", " QA, Smoke ,,")
        clean_env.setenv("TEST_JOB_EXCLUDE_WORDS", "")

        settings = load_settings()
        assert settings.base_url == "https://ci.example.com"
        assert settings.auth == ("bot", "t")
        assert settings.verify_ssl is False
        assert settings.build_history_limit == 25
        assert settings.test_keywords == ("qa", "smoke")
        assert settings.exclude_words == ()
        settings.require_credentials()

    def test_base_url_alias(self, clean_env):
        clean_env.setenv("JENKINS_BASE_URL", "https://legacy.example.com")
        assert load_settings().jenkins_url == "https://legacy.example.com"

    def test_bad_integer(self, clean_env):
        clean_env.setenv("JENKINS_TIMEOUT", "soon")
        with pytest.raises(JenkinsConfigError, match="JENKINS_TIMEOUT"):
            load_settings()


class TestRequireCredentials:
    def test_lists_every_missing_key(self):
        with pytest.raises(JenkinsConfigError) as info:
            Settings().require_credentials()
        message = str(info.value)
        for key in ("JENKINS_URL", "JENKINS_USER", "JENKINS_TOKEN"):
            assert key in message
