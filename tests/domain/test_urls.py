"""Tests for output URL derivation."""

from __future__ import annotations

from datetime import date
from pathlib import PurePosixPath

import pytest

from folioctl.domain.urls import (
    canonical_url,
    expand_permalink,
    page_url,
    parse_post_filename,
    post_url,
    slugify,
)


class TestSlugify:
    @pytest.mark.parametrize(
        ("title", "slug"),
        [
            ("Test-Time Augmentation for Tabular Data", "test-time-augmentation-for-tabular-data"),
            ("  Über  cool!  ", "uber-cool"),
            ("Gradient Accumulation in PyTorch", "gradient-accumulation-in-pytorch"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, title: str, slug: str) -> None:
        assert slugify(title) == slug


class TestPostFilename:
    def test_valid(self) -> None:
        assert parse_post_filename("2020-05-01-my-post") == (date(2020, 5, 1), "my-post")

    def test_missing_prefix(self) -> None:
        assert parse_post_filename("my-post") is None

    def test_impossible_date(self) -> None:
        assert parse_post_filename("2020-13-40-oops") is None


class TestPageUrl:
    @pytest.mark.parametrize(
        ("rel", "permalink", "url"),
        [
            ("about.md", None, "/about.html"),
            ("index.md", None, "/"),
            ("blog/index.html", None, "/blog/"),
            ("_pages/cv.markdown", None, "/cv.html"),
            ("_pages/about.md", "/about/", "/about/"),
            ("_pages/about.md", "about/", "/about/"),
        ],
    )
    def test_page_url(self, rel: str, permalink: str | None, url: str) -> None:
        assert page_url(PurePosixPath(rel), permalink) == url


class TestPermalinks:
    def test_date_style(self) -> None:
        url = expand_permalink(
            "date", post_date=date(2020, 5, 1), slug="hello", categories=["Jupyter", "ML"]
        )
        assert url == "/jupyter/ml/2020/05/01/hello.html"

    def test_pretty_without_categories(self) -> None:
        assert (
            expand_permalink("pretty", post_date=date(2020, 5, 1), slug="hello")
            == "/2020/05/01/hello/"
        )

    def test_none_style(self) -> None:
        assert expand_permalink("none", post_date=date(2020, 5, 1), slug="x") == "/x.html"

    def test_ordinal(self) -> None:
        got = expand_permalink("ordinal", post_date=date(2020, 2, 1), slug="x")
        assert got == "/2020/032/x.html"

    def test_custom_template(self) -> None:
        url = expand_permalink(
            "/:year/:i_month/:i_day/:title/", post_date=date(2020, 5, 1), slug="x"
        )
        assert url == "/2020/5/1/x/"

    def test_post_url_permalink_wins(self) -> None:
        assert post_url("2020-05-01-x", permalink="/custom/") == "/custom/"

    def test_post_url_fallback_date(self) -> None:
        assert post_url("untitled", fallback_date=date(2021, 1, 2)) == "/2021/01/02/untitled.html"


class TestCanonicalUrl:
    @pytest.mark.parametrize("url", ["/about", "/about.html", "/about/", "/about/index.html"])
    def test_equivalent_spellings(self, url: str) -> None:
        assert canonical_url(url) == "/about"

    def test_root(self) -> None:
        assert canonical_url("/") == canonical_url("/index.html") == "/"
