"""Tests for CheckService — content QA and safe repairs."""

from __future__ import annotations

from pathlib import Path

import pytest

from folioctl.config.settings import FolioSettings
from folioctl.domain.content import parse_frontmatter
from folioctl.infrastructure.site import Site
from folioctl.services.check import CheckService, title_from_filename
from tests.conftest import PNG_BYTES, issues_for, notebook_json, write, write_bytes


def _check(site: Site, **kwargs: str) -> dict:
    site.invalidate()
    result = CheckService(site).check(**kwargs)
    assert result.ok
    return result.data


def _messages(data: dict, category: str) -> list[str]:
    return [i["message"] for i in issues_for(data, category)]


# ---------------------------------------------------------------------------
# check() — read-only reporting
# ---------------------------------------------------------------------------


class TestCheckHealthySite:
    def test_zero_issues(self, site: Site) -> None:
        data = _check(site)
        assert data["issues"] == []
        assert data["count"] == 0
        assert data["healthy"] is True

    def test_check_does_not_modify_files(self, site_root: Path, site: Site) -> None:
        path = write(site_root, "_pages/bad.md", "---\npermalink: bad/\n---\n")
        before = path.read_text(encoding="utf-8")
        _check(site)
        assert path.read_text(encoding="utf-8") == before

    def test_invalid_severity(self, site: Site) -> None:
        result = CheckService(site).check(min_severity="fatal")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_SEVERITY"


class TestFrontmatterCategory:
    def test_parse_error(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/broken.md", "---\ntitle: [oops\n---\nBody\n")
        issues = issues_for(_check(site), "frontmatter")
        assert len(issues) == 1
        assert issues[0]["severity"] == "error"
        assert issues[0]["message"].startswith("Front-matter does not parse:")

    def test_impossible_date_is_reported(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_posts/2020-06-01-bad-date.md",
            "---\ntitle: Bad\ndate: 2020-13-45\n---\nBody\n",
        )
        issues = issues_for(_check(site), "frontmatter")
        assert [(i["path"], i["severity"]) for i in issues] == [
            ("_posts/2020-06-01-bad-date.md", "error")
        ]
        assert "month" in issues[0]["message"]

    def test_markdown_without_frontmatter(self, site_root: Path, site: Site) -> None:
        write(site_root, "notes.md", "# Notes\n")
        issues = issues_for(_check(site), "frontmatter")
        assert [(i["path"], i["severity"]) for i in issues] == [("notes.md", "warning")]

    def test_missing_required_keys(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/bare.md", "---\npermalink: /bare/\n---\n")
        issues = issues_for(_check(site), "frontmatter")
        assert {(i["message"], i["fix_action"]) for i in issues} == {
            ("Missing required key 'layout'", "fill_layout"),
            ("Missing required key 'title'", "fill_title"),
        }

    def test_post_requires_title_only(self, site_root: Path, site: Site) -> None:
        write(site_root, "_posts/2021-01-01-untitled.md", "---\nlayout: post\n---\n")
        messages = _messages(_check(site), "frontmatter")
        assert messages == ["Missing required key 'title'"]

    def test_invalid_value(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_posts/2021-01-01-typed.md",
            "---\nlayout: post\ntitle: T\ntoc: maybe\n---\n",
        )
        messages = _messages(_check(site), "frontmatter")
        assert len(messages) == 1
        assert messages[0].startswith("Invalid value: toc:")

    def test_unknown_layout_warns(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/x.md", "---\nlayout: fancy\ntitle: X\npermalink: /x/\n---\n")
        issues = issues_for(_check(site), "frontmatter")
        assert [(i["message"], i["severity"]) for i in issues] == [
            ("Unknown layout 'fancy'", "warning")
        ]

    def test_unknown_layout_errors_with_known_layouts(self, site_root: Path) -> None:
        write(site_root, "_pages/x.md", "---\nlayout: fancy\ntitle: X\npermalink: /x/\n---\n")
        settings = FolioSettings.from_cli(
            site_root=site_root, check={"known_layouts": ["home", "single"]}
        )
        issues = issues_for(_check(Site(settings)), "frontmatter")
        assert [i["severity"] for i in issues] == ["error"]

    def test_layout_none_is_allowed(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/raw.md", "---\nlayout: none\ntitle: Raw\n---\n")
        assert issues_for(_check(site), "frontmatter") == []


class TestPermalinksCategory:
    def test_duplicate_url(self, site_root: Path, site: Site) -> None:
        write(site_root, "about.md", "---\nlayout: page\ntitle: Dup\npermalink: /about/\n---\n")
        issues = issues_for(_check(site), "permalinks")
        assert {i["path"] for i in issues} == {"about.md", "_pages/about.md"}
        assert all(i["severity"] == "error" for i in issues)
        assert "/about" in issues[0]["message"]

    def test_html_and_directory_spellings_collide(self, site_root: Path, site: Site) -> None:
        write(site_root, "portfolio.md", "---\nlayout: page\ntitle: P\n---\n")
        write(site_root, "_pages/portfolio.md", page_with_permalink("/portfolio.html"))
        assert len(issues_for(_check(site), "permalinks")) == 2

    def test_relative_permalink(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/cv.md", "---\nlayout: page\ntitle: CV\npermalink: cv/\n---\n")
        issues = issues_for(_check(site), "permalinks")
        assert [(i["severity"], i["fix_action"]) for i in issues] == [("warning", "prefix_slash")]


def page_with_permalink(permalink: str) -> str:
    return f"---\nlayout: page\ntitle: Portfolio\npermalink: {permalink}\n---\n[a](/about/)\n"


class TestLinksCategory:
    def test_broken_link(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/") + "[x](/gone/)\n",
        )
        assert _messages(_check(site), "links") == ["Broken link '/gone/' (line 2)"]

    def test_footnotes_are_not_links(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_posts/2020-06-01-footnote.md",
            "---\nlayout: post\ntitle: Footnote\n---\n"
            "Result holds.[^1]\n\n[^1]: See Smith et al. 2020 for details.\n",
        )
        assert issues_for(_check(site), "links") == []

    def test_broken_relative_link(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/portfolio.md", page_with_permalink("/portfolio/") + "[x](cv/)\n")
        issues = issues_for(_check(site), "links")
        assert [i["path"] for i in issues] == ["_pages/portfolio.md"]

    def test_post_url_names_no_post(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/") + "{% post_url 2019-01-01-gone %}\n",
        )
        assert _messages(_check(site), "links") == [
            "post_url names no post: '2019-01-01-gone' (line 2)"
        ]

    def test_external_and_liquid_not_checked(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/")
            + "[gh](https://github.com/x) [top](#top) [u]({{ page.url }})\n",
        )
        assert issues_for(_check(site), "links") == []

    def test_baseurl_prefixed_links(self, site_root: Path) -> None:
        write(site_root, "_config.yml", "title: Portfolio\nbaseurl: /blog\n")
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/") + "[h](/blog/)\n",
        )
        settings = FolioSettings.from_cli(site_root=site_root)
        assert issues_for(_check(Site(settings)), "links") == []


class TestImagesCategory:
    def test_missing_image(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/") + "![shot](/images/shot.png)\n",
        )
        assert _messages(_check(site), "images") == ["Missing image '/images/shot.png' (line 2)"]

    def test_missing_frontmatter_image(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_posts/2021-02-02-preview.md",
            "---\nlayout: post\ntitle: P\nimage: images/none.png\n---\n",
        )
        assert _messages(_check(site), "images") == ["Missing front-matter image 'images/none.png'"]

    def test_orphan_asset(self, site_root: Path, site: Site) -> None:
        write_bytes(site_root, "images/unused.png", PNG_BYTES)
        issues = issues_for(_check(site), "images")
        assert [(i["path"], i["severity"]) for i in issues] == [("images/unused.png", "warning")]

    def test_asset_referenced_from_layout(self, site_root: Path, site: Site) -> None:
        write_bytes(site_root, "images/logo.png", PNG_BYTES)
        write(
            site_root,
            "_includes/header.html",
            '<img src="{{ "/images/logo.png" | relative_url }}">\n',
        )
        assert issues_for(_check(site), "images") == []

    def test_longer_name_in_template_does_not_hide_orphan(
        self, site_root: Path, site: Site
    ) -> None:
        write_bytes(site_root, "images/a.png", PNG_BYTES)
        write(site_root, "_includes/footer.html", '<img src="/images/data.png">\n')
        issues = issues_for(_check(site), "images")
        assert [(i["path"], i["severity"]) for i in issues] == [("images/a.png", "warning")]

    def test_orphan_check_can_be_disabled(self, site_root: Path) -> None:
        write_bytes(site_root, "images/unused.png", PNG_BYTES)
        settings = FolioSettings.from_cli(site_root=site_root, check={"orphan_assets": False})
        assert issues_for(_check(Site(settings)), "images") == []


class TestNotebooksCategory:
    def test_invalid_json(self, site_root: Path, site: Site) -> None:
        write(site_root, "_notebooks/2021-03-03-broken.ipynb", "{not json")
        messages = _messages(_check(site), "notebooks")
        assert len(messages) == 1
        assert messages[0].startswith("Invalid notebook: invalid notebook JSON")

    def test_missing_header(self, site_root: Path, site: Site) -> None:
        write(site_root, "_notebooks/2021-03-03-plain.ipynb", notebook_json("Just prose."))
        assert _messages(_check(site), "notebooks") == ["First cell carries no front-matter header"]

    def test_invalid_header_value(self, site_root: Path, site: Site) -> None:
        write(site_root, "_notebooks/2021-03-03-typed.ipynb", notebook_json("# T\n\n- toc: maybe"))
        messages = _messages(_check(site), "notebooks")
        assert len(messages) == 1
        assert messages[0].startswith("Invalid notebook front-matter: toc:")

    def test_yaml_header_accepted(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_notebooks/2021-03-03-yaml.ipynb",
            notebook_json("---\ntitle: YAML form\n---\n", first_cell_type="raw"),
        )
        assert issues_for(_check(site), "notebooks") == []

    def test_post_filename_without_date(self, site_root: Path, site: Site) -> None:
        write(site_root, "_posts/undated.md", "---\nlayout: post\ntitle: U\n---\n")
        assert _messages(_check(site), "notebooks") == [
            "Filename 'undated.md' lacks the YYYY-MM-DD- date prefix"
        ]


class TestGraphHealthCategory:
    def test_unreachable_page(self, site_root: Path, site: Site) -> None:
        write(
            site_root,
            "_pages/lonely.md",
            "---\nlayout: page\ntitle: L\npermalink: /lonely/\n---\n",
        )
        issues = issues_for(_check(site), "graph_health")
        assert [(i["path"], i["severity"]) for i in issues] == [("_pages/lonely.md", "warning")]
        assert issues[0]["message"] == "Page /lonely/ is not linked from any other page"

    def test_hidden_and_exempt_pages(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/secret.md", "---\nlayout: page\ntitle: S\nhide: true\n---\n")
        write(site_root, "404.md", "---\nlayout: page\ntitle: Missing\npermalink: /404.html\n---\n")
        assert issues_for(_check(site), "graph_health") == []

    def test_header_pages_count_as_linked(self, site_root: Path) -> None:
        write(site_root, "_config.yml", "title: P\nheader_pages:\n  - _pages/lonely.md\n")
        write(
            site_root,
            "_pages/lonely.md",
            "---\nlayout: page\ntitle: L\npermalink: /lonely/\n---\n",
        )
        settings = FolioSettings.from_cli(site_root=site_root)
        assert issues_for(_check(Site(settings)), "graph_health") == []

    def test_posts_are_exempt(self, site_root: Path, site: Site) -> None:
        write(site_root, "_posts/2021-04-04-quiet.md", "---\nlayout: post\ntitle: Q\n---\n")
        assert issues_for(_check(site), "graph_health") == []


class TestSeverityFilter:
    def test_errors_only(self, site_root: Path, site: Site) -> None:
        write(site_root, "notes.md", "# Notes [x](/gone/)\n")
        data = _check(site, min_severity="error")
        assert data["warning_count"] == 0
        assert data["error_count"] == 1
        assert data["healthy"] is False
        assert {i["severity"] for i in data["issues"]} == {"error"}


# ---------------------------------------------------------------------------
# fix()
# ---------------------------------------------------------------------------


class TestFix:
    def test_nothing_to_fix(self, site: Site) -> None:
        result = CheckService(site).fix()
        assert result.ok
        assert result.data == {"fixes": [], "count": 0, "level": "safe"}

    def test_invalid_level(self, site: Site) -> None:
        result = CheckService(site).fix(level="reckless")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_LEVEL"

    def test_prefix_permalink(self, site_root: Path, site: Site) -> None:
        path = write(
            site_root,
            "_pages/cv.md",
            "---\nlayout: page\ntitle: CV\npermalink: cv/\n---\n",
        )
        result = CheckService(site).fix()
        assert result.data["fixes"] == ["Prefixed permalink with '/': _pages/cv.md"]
        fm, _ = parse_frontmatter(path.read_text(encoding="utf-8"))
        assert fm["permalink"] == "/cv/"

    def test_fill_layout_and_title(self, site_root: Path, site: Site) -> None:
        path = write(site_root, "_pages/my-projects.md", "---\npermalink: /projects/\n---\nBody\n")
        result = CheckService(site).fix()
        assert result.data["fixes"] == [
            "Set layout 'page': _pages/my-projects.md",
            "Set title 'My Projects': _pages/my-projects.md",
        ]
        text = path.read_text(encoding="utf-8")
        assert text.startswith(
            "---\nlayout: page\ntitle: My Projects\npermalink: /projects/\n---\n"
        )
        assert text.endswith("Body\n")

    def test_post_layout_filled(self, site_root: Path, site: Site) -> None:
        path = write(site_root, "_posts/2021-05-05-x.md", "---\ntitle: X\n---\n")
        CheckService(site).fix()
        fm, _ = parse_frontmatter(path.read_text(encoding="utf-8"))
        assert fm["layout"] == "post"

    def test_fix_clears_issues(self, site_root: Path, site: Site) -> None:
        write(site_root, "_pages/about-me.md", "---\npermalink: about-me/\n---\n[a](/about/)\n")
        write(
            site_root,
            "_pages/portfolio.md",
            page_with_permalink("/portfolio/") + "[m](/about-me/)\n",
        )
        CheckService(site).fix()
        data = _check(site)
        assert issues_for(data, "frontmatter") == []
        assert issues_for(data, "permalinks") == []

    def test_safe_keeps_order_and_comments(self, site_root: Path, site: Site) -> None:
        path = write(
            site_root,
            "_pages/t.md",
            "---\ntitle: T  # shown in nav\npermalink: t/\nlayout: page\n---\n",
        )
        CheckService(site).fix()
        text = path.read_text(encoding="utf-8")
        assert "# shown in nav" in text
        assert text.index("title") < text.index("layout")

    def test_aggressive_reorders(self, site_root: Path, site: Site) -> None:
        path = write(site_root, "_pages/t.md", "---\ntitle: T\nlayout: page\npermalink: /t/\n---\n")
        assert CheckService(site).fix().data["count"] == 0
        result = CheckService(site).fix(level="aggressive")
        assert result.data["fixes"] == ["Re-ordered front-matter: _pages/t.md"]
        assert path.read_text(encoding="utf-8").startswith("---\nlayout: page\ntitle: T\n")

    def test_aggressive_with_numeric_keys(self, site_root: Path, site: Site) -> None:
        path = write(
            site_root,
            "_pages/awards.md",
            "---\ntitle: Awards\n2021: award\nlayout: page\npermalink: /awards/\n---\n",
        )
        result = CheckService(site).fix(level="aggressive")
        assert result.ok
        assert result.data["fixes"] == ["Re-ordered front-matter: _pages/awards.md"]
        assert path.read_text(encoding="utf-8").startswith(
            "---\nlayout: page\ntitle: Awards\npermalink: /awards/\n2021: award\n---\n"
        )

    def test_safe_fix_keeps_body_and_line_endings(self, site_root: Path, site: Site) -> None:
        path = write_bytes(
            site_root,
            "_pages/cv.md",
            b"---\r\nlayout: page\r\ntitle: CV\r\npermalink: cv/\r\n---\r\n\r\n[a](/about/)\r\n",
        )
        CheckService(site).fix()
        assert path.read_bytes() == (
            b"---\r\nlayout: page\r\ntitle: CV\r\npermalink: /cv/\r\n---\r\n\r\n[a](/about/)\r\n"
        )

    def test_skips_unparseable_and_notebooks(self, site_root: Path, site: Site) -> None:
        broken = write(site_root, "_pages/broken.md", "---\ntitle: [oops\n---\n")
        nb = site_root / "_notebooks" / "2020-06-01-tta-tabular.ipynb"
        nb_before = nb.read_text(encoding="utf-8")
        CheckService(site).fix(level="aggressive")
        assert broken.read_text(encoding="utf-8") == "---\ntitle: [oops\n---\n"
        assert nb.read_text(encoding="utf-8") == nb_before


class TestTitleFromFilename:
    @pytest.mark.parametrize(
        ("path", "title"),
        [
            ("_pages/portfolio-projects.md", "Portfolio Projects"),
            ("blog/index.md", "Blog"),
            ("index.md", "Home"),
            ("_pages/index.md", "Home"),
            ("snake_case.md", "Snake Case"),
        ],
    )
    def test_title(self, path: str, title: str) -> None:
        assert title_from_filename(Path(path)) == title
