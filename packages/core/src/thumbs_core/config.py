import logging
import os
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

THUMBS_CONFIG_FILE = ".thumbs.yml"
DEFAULT_MINIMUM_REVIEWERS = 2

DEFAULT_SETTINGS: dict = {
    "build_root": "/tmp/thumbs",
    "remote_url": "git@github.com:{repo}.git",
    "command_timeout": 3600,  # seconds; None = wait forever
    "dedupe_reviewers": False,  # count repeated +1s from one login once
    "merge_commit_message": "Thumbs Git Robot Merge. ",
    "store": "noop",
}


def load_settings(config_path: str = ".thumbs-bot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load bot settings by merging (in order of precedence):
      1. Built-in defaults
      2. The settings file, if it exists
      3. CLI argument overrides
    """
    settings = dict(DEFAULT_SETTINGS)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_settings = yaml.safe_load(f) or {}
        settings.update(file_settings)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                settings[key] = value

    settings["github_token"] = os.environ.get("GITHUB_TOKEN") or settings.get("github_token")

    return settings


def load_thumbs_config(build_dir: str | os.PathLike) -> Optional[dict]:
    """Read ``.thumbs.yml`` from a checked-out workspace.

    Returns None when the file is missing or unreadable. A repository without
    a usable config is never merged automatically, but that is decided by the
    eligibility check, not here.
    """
    path = Path(build_dir) / THUMBS_CONFIG_FILE
    if not path.exists():
        logger.debug("%s not found in %s", THUMBS_CONFIG_FILE, build_dir)
        return None
    try:
        config = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.error("%s loading failed: %s", THUMBS_CONFIG_FILE, e)
        return None
    if not isinstance(config, dict):
        logger.error("%s must be a mapping, got %s", THUMBS_CONFIG_FILE, type(config).__name__)
        return None
    logger.debug("%s loaded: %s", THUMBS_CONFIG_FILE, config)
    return config


def is_reviewer_count(value) -> bool:
    """True for a usable ``minimum_reviewers`` value: an int, but not a bool."""
    return isinstance(value, int) and not isinstance(value, bool)


def minimum_reviewers(config: Optional[dict]) -> int:
    if config and "minimum_reviewers" in config:
        return config["minimum_reviewers"]
    return DEFAULT_MINIMUM_REVIEWERS


def build_steps(config: Optional[dict]) -> list[str]:
    if not config:
        return []
    steps = config.get("build_steps") or []
    if not isinstance(steps, list):
        logger.error("%s build_steps must be a list, got %s", THUMBS_CONFIG_FILE, type(steps).__name__)
        return []
    return [str(s) for s in steps]
