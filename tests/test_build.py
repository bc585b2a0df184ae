"""End-to-end build against a mocked GitHub API."""

from __future__ import annotations

import json
import shutil

import pytest
from httpx import Response

from portgen.cli import build_parser, build_site, main

from conftest import ROOT

POST = """---
title: "Hello & welcome"
date: 2024-06-01
author: Ada
tags: [meta]
excerpt: "First post"
---

Thanks @octocat.
"""


@pytest.fixture
def site(tmp_path):
    projects = {
        "projects": [
            {"id": "demo", "name": "Demo", "repo": "octo/demo", "description": "Demo project"},
            {"id": "broken", "name": "Broken", "repo": "octo/broken"},
        ]
    }
    (tmp_path / "projects.json").write_text(json.dumps(projects), encoding="utf-8")
    shutil.copytree(ROOT / "templates", tmp_path / "templates")
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "hello.md").write_text(POST, encoding="utf-8")
    (tmp_path / "static" / "css").mkdir(parents=True)
    (tmp_path / "static" / "css" / "styles.css").write_text("body {}", encoding="utf-8")
    return tmp_path


def site_args(site, *extra):
    argv = [
        "--projects", str(site / "projects.json"),
        "--posts", str(site / "posts"),
        "--templates", str(site / "templates"),
        "--static", str(site / "static"),
        "--output", str(site / "out"),
        *extra,
    ]
    return build_parser({}, "site.toml").parse_args(argv)


def test_full_build(site, client, mock_repo, repo_info, release):
    mock_repo("octo/demo", info=repo_info, release=release, releases=[release], readme="# Demo\n\nSee ROADMAP.")
    mock_repo("octo/broken", info=Response(500, text="boom"))

    result = build_site(site_args(site, "--site-url", "https://example.com"), client=client)

    out = site / "out"
    assert result == {"projects": {"demo": True, "broken": False}, "posts": 1}
    assert sorted(path.name for path in (out / "data" / "cache" / "projects").glob("*.json")) == ["demo.json"]

    demo = (out / "projects" / "demo.html").read_text(encoding="utf-8")
    assert 'data-project="demo"' in demo
    assert '<span id="stars">42</span>' in demo
    assert "Spring release" in demo
    broken = (out / "projects" / "broken.html").read_text(encoding="utf-8")
    assert 'data-project="broken"' in broken

    index = json.loads((out / "blog" / "blog-index.json").read_text(encoding="utf-8"))
    assert index["posts"][0]["slug"] == "hello"
    post = (out / "blog" / "posts" / "hello.html").read_text(encoding="utf-8")
    assert 'class="user-mention">@octocat</a>' in post

    assert "<title>Hello &amp; welcome</title>" in (out / "feed.xml").read_text(encoding="utf-8")
    assert "https://example.com/projects/broken.html" in (out / "sitemap.xml").read_text(encoding="utf-8")
    assert "Hello & welcome" in (out / "sitemap.html").read_text(encoding="utf-8")
    assert (out / "css" / "highlight.css").exists()
    assert (out / "css" / "styles.css").read_text(encoding="utf-8") == "body {}"


def test_build_without_site_url_skips_feeds(site, client, mock_repo, repo_info, caplog):
    mock_repo("octo/demo", info=repo_info)
    mock_repo("octo/broken", info=repo_info)

    build_site(site_args(site, "--no-hydrate", "--no-enable-html-sitemap"), client=client)

    out = site / "out"
    assert not (out / "feed.xml").exists()
    assert not (out / "sitemap.xml").exists()
    assert not (out / "sitemap.html").exists()
    assert "skipping sitemap.xml and feed.xml" in caplog.text
    assert "{{STARS}}" in (out / "projects" / "demo.html").read_text(encoding="utf-8")


def test_snapshot_only_hydration(site, client, mock_repo, repo_info):
    routes = mock_repo("octo/demo", info=repo_info)
    mock_repo("octo/broken", info=repo_info)

    build_site(site_args(site, "--no-live-fallback"), client=client)

    assert not routes["releases"].called
    demo = (site / "out" / "projects" / "demo.html").read_text(encoding="utf-8")
    assert "No releases available." in demo
    assert "No CHANGELOG.md found." in demo


def test_missing_project_list_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path / "none.toml"), "--projects", str(tmp_path / "missing.json")])
    assert excinfo.value.code == 1
    assert "Project list not found" in capsys.readouterr().err


def test_invalid_config_exits(tmp_path, capsys):
    config = tmp_path / "site.toml"
    config.write_text("site_name = ", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config)])
    assert excinfo.value.code == 1
    assert "Invalid TOML" in capsys.readouterr().err


def test_homepage_and_blog_page(site, client, mock_repo, repo_info, release):
    mock_repo("octo/demo", info=repo_info, release=release)
    mock_repo("octo/broken", info=Response(500, text="boom"))

    build_site(site_args(site, "--no-hydrate"), client=client)

    index = (site / "out" / "index.html").read_text(encoding="utf-8")
    assert 'src="https://avatars.example/octo.png"' in index
    assert '<a href="projects/demo.html" class="btn">' in index
    assert '<a href="https://github.com/octo/broken"' in index
    assert '<a href="blog/posts/hello.html">Hello & welcome</a>' in index
    assert (site / "out" / "blog.html").exists()


def test_index_can_be_disabled(site, client, mock_repo, repo_info):
    mock_repo("octo/demo", info=repo_info)
    mock_repo("octo/broken", info=repo_info)

    build_site(site_args(site, "--no-hydrate", "--no-enable-index"), client=client)

    assert not (site / "out" / "index.html").exists()
    assert not (site / "out" / "blog.html").exists()
