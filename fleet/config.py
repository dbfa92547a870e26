"""
Runtime configuration for the dashboard.

Values come from the environment (optionally a .env file).  Nothing outside
this module reads os.environ: a Settings value is built once by
load_settings() and handed to the client, walker and classification rules.
Missing Jenkins credentials are not an import-time failure; they surface
per request through require_credentials().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from fleet.classify import ClassificationRules

_DEFAULT_TEST_KEYWORDS = "test,testing,tst,demo,trial,experiment"
_DEFAULT_EXCLUDE_WORDS = "latest,attest,contest,protest,fastest,greatest"


class JenkinsConfigError(EnvironmentError):
    """Raised when the Jenkins base URL or credentials are not configured."""


def _split_words(raw: str) -> tuple[str, ...]:
    return tuple(w.strip().lower() for w in raw.split(",") if w.strip())


def _env_bool(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() not in ("false", "0", "no")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise JenkinsConfigError(f"{name} must be an integer, got {raw!r}.")


@dataclass(frozen=True)
class Settings:
    jenkins_url: str = ""
    jenkins_user: str = ""
    jenkins_token: str = ""
    verify_ssl: bool = True
    timeout: int = 30

    folder_max_depth: int = 20
    build_history_limit: int = 100

    test_keywords: tuple[str, ...] = field(default_factory=lambda: _split_words(_DEFAULT_TEST_KEYWORDS))
    exclude_words: tuple[str, ...] = field(default_factory=lambda: _split_words(_DEFAULT_EXCLUDE_WORDS))

    active_window_days: int = 7
    inactive_threshold_days: int = 60

    synthetic_job_count: int = 856
    synthetic_seed: int = 42

    @property
    def base_url(self) -> str:
        return self.jenkins_url.rstrip("/")

    @property
    def auth(self) -> tuple[str, str]:
        return (self.jenkins_user, self.jenkins_token)

    @property
    def rules(self) -> ClassificationRules:
        return ClassificationRules(self.test_keywords, self.exclude_words)

    def require_credentials(self) -> None:
        """Raise JenkinsConfigError naming every missing connection setting."""
        missing = [k for k, v in {
            "JENKINS_URL": self.jenkins_url,
            "JENKINS_USER": self.jenkins_user,
            "JENKINS_TOKEN": self.jenkins_token,
        }.items() if not v]
        if missing:
            raise JenkinsConfigError(
                f"Jenkins credentials not configured (missing {', '.join(missing)}). "
                "Copy .env.example to .env and fill in your credentials."
            )


def load_settings() -> Settings:
    """Build Settings from the process environment and any .env file."""
    load_dotenv()
    return Settings(
        jenkins_url=os.environ.get("JENKINS_URL") or os.environ.get("JENKINS_BASE_URL", ""),
        jenkins_user=os.environ.get("JENKINS_USER", ""),
        jenkins_token=os.environ.get("JENKINS_TOKEN", ""),
        verify_ssl=_env_bool("JENKINS_VERIFY_SSL"),
        timeout=_env_int("JENKINS_TIMEOUT", 30),
        folder_max_depth=_env_int("FOLDER_MAX_DEPTH", 20),
        build_history_limit=_env_int("BUILD_HISTORY_LIMIT", 100),
        test_keywords=_split_words(os.environ.get("TEST_JOB_KEYWORDS", _DEFAULT_TEST_KEYWORDS)),
        exclude_words=_split_words(os.environ.get("TEST_JOB_EXCLUDE_WORDS", _DEFAULT_EXCLUDE_WORDS)),
        active_window_days=_env_int("ACTIVE_WINDOW_DAYS", 7),
        inactive_threshold_days=_env_int("INACTIVE_THRESHOLD_DAYS", 60),
        synthetic_job_count=_env_int("SYNTHETIC_JOB_COUNT", 856),
        synthetic_seed=_env_int("SYNTHETIC_SEED", 42),
    )
