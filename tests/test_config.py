from __future__ import annotations

import json

import pytest

from portgen.cli import build_parser
from portgen.config import ConfigError, load_config, load_projects


def test_missing_config_means_defaults(tmp_path):
    assert load_config(tmp_path / "site.toml") == {}


@pytest.mark.parametrize(
    "name, text",
    [
        ("site.toml", 'site_name = "Mine"\nworkers = 3\nenable_rss = false\n'),
        ("site.yaml", "site_name: Mine\nworkers: 3\nenable_rss: false\n"),
        ("site.json", '{"site_name": "Mine", "workers": 3, "enable_rss": false}'),
    ],
)
def test_config_formats(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    assert load_config(path) == {"site_name": "Mine", "workers": 3, "enable_rss": False}


def test_empty_yaml_is_empty_config(tmp_path):
    path = tmp_path / "site.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == {}


@pytest.mark.parametrize(
    "name, text",
    [
        ("site.toml", "site_name = "),
        ("site.yaml", "site_name: [unclosed"),
        ("site.json", "{not json"),
        ("site.json", "[1, 2]"),
    ],
)
def test_invalid_config(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_config_values_become_defaults():
    config = {"site_name": "Mine", "workers": "4", "enable_rss": "no", "hydrate": 0}
    args = build_parser(config, "site.toml").parse_args([])
    assert args.site_name == "Mine"
    assert args.workers == 4
    assert args.enable_rss is False
    assert args.hydrate is False
    assert args.live_fallback is True
    assert args.branch == "main"


def test_command_line_overrides_config():
    args = build_parser({"language": "de", "enable_rss": True}, "site.toml").parse_args(
        ["--language", "en", "--no-enable-rss", "--workers", "2"]
    )
    assert args.language == "en"
    assert args.enable_rss is False
    assert args.workers == 2


def test_load_projects(tmp_path):
    path = tmp_path / "projects.json"
    path.write_text(
        json.dumps({"projects": [{"id": "a", "repo": "o/a"}, {"id": "b", "name": "B", "repo": "o/b", "icon": ""}]}),
        encoding="utf-8",
    )
    projects = load_projects(path)
    assert [project.id for project in projects] == ["a", "b"]
    assert projects[0].name == "a"
    assert projects[1].icon is None
    assert projects[1].repo_url == "https://github.com/o/b"


def test_empty_project_list(tmp_path):
    path = tmp_path / "projects.json"
    path.write_text("{}", encoding="utf-8")
    assert load_projects(path) == []


@pytest.mark.parametrize(
    "text, message",
    [
        (None, "not found"),
        ("{oops", "Invalid JSON"),
        ('{"projects": {"id": "a"}}', "must be a list"),
        ('{"projects": [{"id": "a"}]}', "needs 'id' and 'repo'"),
    ],
)
def test_invalid_project_list(tmp_path, text, message):
    path = tmp_path / "projects.json"
    if text is not None:
        path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_projects(path)
