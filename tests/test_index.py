"""Homepage project cards and blog listing."""

from __future__ import annotations

from portgen.cache import write_snapshot
from portgen.models import BlogPost, Project, ProjectSnapshot, Release, RepoInfo
from portgen.pages import (
    generate_blog_page,
    generate_index_page,
    owner_avatar_html,
    render_blog_list,
    render_project_card,
)
from portgen.render import read_template

from conftest import ROOT

DEMO = Project(id="demo", name="Demo", repo="octo/demo")
AVATAR = "https://avatars.example/octo.png"


def snapshot(release=True) -> ProjectSnapshot:
    return ProjectSnapshot(
        repo="octo/demo",
        name="Demo",
        description="",
        last_update="2024-06-01T00:00:00.000Z",
        repo_info=RepoInfo(stars=42, forks=7, open_issues=3, description="From GitHub", avatar_url=AVATAR),
        latest_release=Release(tag_name="v1.2.0", name="Spring release") if release else None,
    )


def posts(count: int) -> list[BlogPost]:
    return [
        BlogPost(slug=f"post-{i}", title=f"Post {i}", date=f"2024-0{9 - i}-01", author="Ada", tags=("python",))
        for i in range(count)
    ]


def test_card_from_snapshot():
    card = render_project_card(DEMO, snapshot())
    assert f'<img src="{AVATAR}" alt="Demo" class="project-icon">' in card
    assert "<p>From GitHub</p>" in card
    assert '<span class="version-tag">v1.2.0</span>' in card
    assert "<strong>Latest version:</strong> Spring release" in card
    assert "⭐ 42" in card
    assert "🍴 7" in card
    assert "📝 3 Issues" in card
    assert '<a href="projects/demo.html" class="btn">' in card


def test_card_without_release_or_description():
    card = render_project_card(Project(id="demo", name="Demo", repo="octo/demo", description="Mine"), snapshot(False))
    assert "version-tag" not in card
    assert "<p>Mine</p>" in card


def test_fallback_card_links_to_github():
    card = render_project_card(DEMO, None, language="de")
    assert "GitHub-Daten konnten nicht geladen werden." in card
    assert "<p>Keine Beschreibung verfügbar</p>" in card
    assert '<a href="https://github.com/octo/demo" target="_blank" rel="noopener noreferrer" class="btn">' in card
    assert "projects/demo.html" not in card


def test_owner_avatar():
    assert owner_avatar_html(snapshot()) == f'<img id="owner-avatar" src="{AVATAR}" alt="" class="owner-avatar">'
    assert owner_avatar_html(None) == ""


def test_blog_list_shows_five_newest_and_more_link():
    out = render_blog_list(posts(7))
    assert out.count('<article class="blog-post">') == 5
    assert "Post 4" in out
    assert "Post 5" not in out
    assert '<a href="blog.html" class="btn">All blog posts →</a>' in out


def test_blog_list_without_more_link():
    out = render_blog_list(posts(5), language="de")
    assert '<a href="blog.html"' not in out
    assert "<span>von Ada</span>" in out
    assert "Weiterlesen →" in out
    assert '<span class="tag">python</span>' in out


def test_blog_list_entry():
    post = BlogPost(slug="hello", title="Hello", date="2024-06-01", excerpt="Short", tags=())
    out = render_blog_list([post])
    assert '<h3><a href="blog/posts/hello.html">Hello</a></h3>' in out
    assert '<time datetime="2024-06-01">June 1, 2024</time>' in out
    assert '<p class="excerpt">Short</p>' in out
    assert "post-tags" not in out
    assert "<span>by" not in out


def test_empty_blog_list():
    assert "No blog posts yet" in render_blog_list([])


def test_index_page_uses_cached_snapshots(tmp_path):
    cache_dir = tmp_path / "cache"
    write_snapshot(cache_dir, "demo", snapshot().to_dict())
    broken = Project(id="broken", name="Broken", repo="octo/broken")
    template = read_template(ROOT / "templates" / "index.html")

    path = generate_index_page(template, [DEMO, broken], posts(2), cache_dir, tmp_path, "Site", "About me")

    html = path.read_text(encoding="utf-8")
    assert path == tmp_path / "index.html"
    assert "<title>Site</title>" in html
    assert 'id="owner-avatar"' in html
    assert html.count('<div class="project-card">') == 2
    assert "View on GitHub →" in html
    assert html.count('<article class="blog-post">') == 2


def test_index_page_without_projects(tmp_path):
    template = read_template(ROOT / "templates" / "index.html")
    html = generate_index_page(template, [], [], tmp_path, tmp_path, "Site").read_text(encoding="utf-8")
    assert "No projects configured." in html
    assert 'id="owner-avatar"' not in html


def test_blog_page_lists_every_post(tmp_path):
    template = read_template(ROOT / "templates" / "blog.html")
    html = generate_blog_page(template, posts(7), tmp_path, "Site").read_text(encoding="utf-8")
    assert html.count('<article class="blog-post">') == 7
    assert "All blog posts" not in html
