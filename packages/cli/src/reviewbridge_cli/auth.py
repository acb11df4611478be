"""Platform token resolution.

Resolution order (stops at first success):
  1. An explicit --token value
  2. The platform's environment variable (GITHUB_TOKEN, GITLAB_TOKEN, AZURE_DEVOPS_TOKEN)
  3. GitHub only: `gh auth token` (the GitHub CLI session from `gh auth login`)

Tokens are returned trimmed and are never written anywhere.
"""

from __future__ import annotations

import logging
import os
import subprocess

from reviewbridge_core.config import TOKEN_ENV_VARS

logger = logging.getLogger(__name__)


def resolve_github_cli_token() -> str | None:
    """Return the token stored by `gh auth login`, or None. Never raises."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh missing or timed out; fall through.
        pass
    return None


def resolve_token(platform: str, explicit: str | None = None) -> str | None:
    """Return an access token for ``platform`` or None if no source has one."""
    if explicit and explicit.strip():
        return explicit.strip()

    env_var = TOKEN_ENV_VARS.get(platform)
    token = os.environ.get(env_var) if env_var else None
    if token and token.strip():
        return token.strip()

    if platform == "github":
        return resolve_github_cli_token()
    return None
