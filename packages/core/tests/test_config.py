"""Tests for configuration loading."""

from reviewbridge_core.config import load_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "gemini"
    assert config["max_chars_per_file"] == 10000
    assert config["max_files"] == 50
    assert config["github_per_page"] == 100
    assert config["azure_max_content_chars"] == 50000
    assert config["exclude"] == []


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".rb.yml"
    cfg.write_text("model: openai\nmax_files: 10\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "openai"
    assert config["max_files"] == 10


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".rb.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["model"] == "gemini"


def test_exclude_patterns_loaded(tmp_path):
    cfg = tmp_path / ".rb.yml"
    cfg.write_text("exclude:\n  - migrations/\n  - '*.lock'\n")
    config = load_config(config_path=str(cfg))
    assert "migrations/" in config["exclude"]
    assert "*.lock" in config["exclude"]


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".rb.yml"
    cfg.write_text("model: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "anthropic"})
    assert config["model"] == "anthropic"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".rb.yml"
    cfg.write_text("model: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "openai"


def test_env_vars_loaded(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("GITLAB_TOKEN", "gl-token")
    monkeypatch.setenv("AZURE_DEVOPS_TOKEN", "az-token")
    monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["github_token"] == "gh-token"
    assert config["gitlab_token"] == "gl-token"
    assert config["azure_token"] == "az-token"
    assert config["gemini_api_key"] == "gem-key"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


def test_missing_env_vars_are_none(monkeypatch, tmp_path):
    monkeypatch.delenv("GITLAB_TOKEN", raising=False)
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["gitlab_token"] is None


def test_exclude_list_is_not_shared_reference(tmp_path):
    """Mutating one config's exclude list must not affect another."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["exclude"].append("migrations/")
    assert config_b["exclude"] == []
