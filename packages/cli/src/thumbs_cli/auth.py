"""GitHub token resolution for the thumbs bot.

Resolution order (stops at first success):
  1. an explicit token from the settings file or command line
  2. GITHUB_TOKEN environment variable
  3. `gh auth token` (GitHub CLI session)

The resolved token is handed to GitHubProvider; nothing in thumbs_core reads
credentials from the environment.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def _gh_cli_token() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token(explicit: str | None = None) -> str | None:
    """Return a GitHub token, or None if no source provides one. Never raises."""
    if explicit:
        return explicit
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token
    token = _gh_cli_token()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token
