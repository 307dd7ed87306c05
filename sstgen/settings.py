"""
Runtime settings read from the environment.
"""

import os
from pathlib import Path
from typing import Optional


DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


def get_sstgen_home() -> Path:
    """
    Get the sstgen home directory, where saved configurations live.

    Returns:
        Path: sstgen home directory
    """
    sstgen_home = os.environ.get("SSTGEN_HOME", ".sstgen")
    return Path(sstgen_home).resolve()


def get_github_api_url() -> str:
    return os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/")


def get_github_token() -> Optional[str]:
    return os.getenv("GITHUB_TOKEN")


def get_http_timeout() -> float:
    return float(os.getenv("SSTGEN_HTTP_TIMEOUT", "15"))


def get_classifier_name() -> str:
    """
    Name of the classifier used for repository analysis.

    Defaults to the Anthropic model when an API key is present and to the
    offline rule table otherwise.
    """
    name = os.getenv("SSTGEN_CLASSIFIER")
    if name:
        return name.lower()
    return "anthropic" if os.getenv("ANTHROPIC_API_KEY") else "rules"


def get_classifier_model() -> Optional[str]:
    return os.getenv("SSTGEN_CLASSIFIER_MODEL")


def get_scratch_root() -> Optional[str]:
    """Directory for per-run clones; None means the system temp dir."""
    return os.getenv("SSTGEN_SCRATCH_DIR")


def get_deploy_stage() -> str:
    return os.getenv("SSTGEN_DEPLOY_STAGE", "production")


def get_deploy_region() -> str:
    return os.getenv("SSTGEN_DEPLOY_REGION", "us-east-1")


def get_max_saved_configs() -> int:
    return int(os.getenv("SSTGEN_MAX_SAVED_CONFIGS", "50"))


def get_log_level() -> str:
    return os.getenv("SSTGEN_LOG_LEVEL", "INFO").upper()
