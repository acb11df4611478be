import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "gemini",
    "max_chars_per_file": 10000,
    "max_files": 50,
    "github_per_page": 100,
    "azure_max_content_chars": 50000,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
}

# Environment variable holding each platform's access token.
TOKEN_ENV_VARS = {
    "github": "GITHUB_TOKEN",
    "gitlab": "GITLAB_TOKEN",
    "azure": "AZURE_DEVOPS_TOKEN",
}

# Environment variable holding each analysis engine's API key.
API_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def load_config(config_path: str = ".reviewbridge.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewbridge.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    for platform, env_var in TOKEN_ENV_VARS.items():
        config[f"{platform}_token"] = os.environ.get(env_var)
    for model, env_var in API_KEY_ENV_VARS.items():
        config[f"{model}_api_key"] = os.environ.get(env_var)

    return config
