from __future__ import annotations

import json
import tomllib
from pathlib import Path

import yaml

from .models import Project


class ConfigError(Exception):
    pass


def load_config(path: Path) -> dict:
    """Read the site config (TOML, YAML or JSON by suffix); a missing file means no overrides."""
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def load_projects(path: Path) -> list[Project]:
    if not path.exists():
        raise ConfigError(f"Project list not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in project list {path}: {exc}") from exc
    entries = data.get("projects") if isinstance(data, dict) else None
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise ConfigError(f"'projects' must be a list in {path}")
    projects = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("repo"):
            raise ConfigError(f"Project #{index + 1} in {path} needs 'id' and 'repo'")
        projects.append(Project.from_dict(entry))
    return projects
