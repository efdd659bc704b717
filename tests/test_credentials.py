"""Tests for commit_titles.credentials covering the token provider chain.

Run with:
    pytest tests/test_credentials.py --maxfail=1 -v --cov=commit_titles.credentials --cov-report=term-missing
"""

from unittest.mock import MagicMock, patch

from commit_titles import credentials


def test_first_provider_with_a_token_wins():
    calls = []

    def provider(name, value):
        def _inner():
            calls.append(name)
            return value
        return (name, _inner)

    token, source = credentials.resolve_token([
        provider("a", None),
        provider("b", "tok-b"),
        provider("c", "tok-c"),
    ])
    assert (token, source) == ("tok-b", "b")
    assert calls == ["a", "b"]


def test_no_provider_yields_none():
    assert credentials.resolve_token([("a", lambda: None)]) == (None, None)


def test_env_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "  env-token  ")
    assert credentials.token_from_env() == "env-token"
    monkeypatch.delenv("GITHUB_TOKEN")
    assert credentials.token_from_env() is None


def test_gh_hosts_file(tmp_path):
    hosts = tmp_path / "hosts.yml"
    hosts.write_text("github.com:\n    user: dev\n    oauth_token: gho_hosts\n", encoding="utf-8")
    assert credentials.token_from_gh_hosts(hosts) == "gho_hosts"

    hosts.write_text("github.com: [unbalanced\n", encoding="utf-8")
    assert credentials.token_from_gh_hosts(hosts) is None
    assert credentials.token_from_gh_hosts(tmp_path / "missing.yml") is None


def test_gh_hosts_file_with_invalid_utf8_is_a_miss(tmp_path):
    hosts = tmp_path / "hosts.yml"
    hosts.write_bytes(b"github.com:\n    oauth_token: \xff\xfe\n")
    assert credentials.token_from_gh_hosts(hosts) is None

    token, source = credentials.resolve_token([
        ("GitHub CLI", lambda: credentials.token_from_gh_hosts(hosts)),
        ("GitHub CLI", lambda: "gho_cli"),
    ])
    assert (token, source) == ("gho_cli", "GitHub CLI")


@patch("commit_titles.credentials.shutil.which", return_value="/usr/bin/gh")
@patch("commit_titles.credentials.subprocess.run")
def test_gh_cli_token(mock_run, mock_which):
    mock_run.return_value = MagicMock(returncode=0, stdout="gho_cli\n")
    assert credentials.token_from_gh_cli() == "gho_cli"

    mock_run.return_value = MagicMock(returncode=1, stdout="")
    assert credentials.token_from_gh_cli() is None


@patch("commit_titles.credentials.shutil.which", return_value=None)
def test_gh_cli_missing(mock_which):
    assert credentials.token_from_gh_cli() is None


def test_default_providers_prefer_command_line(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    assert credentials.resolve_token(credentials.default_providers("cli-token")) == ("cli-token", "command line")
    token, source = credentials.resolve_token(credentials.default_providers(None))
    assert (token, source) == ("env-token", "environment variable")
