"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, folioctl.toml only contains
overrides. A site with a stock Jekyll/fastpages layout needs no file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SiteConfig(BaseModel):
    """[site] section.

    ``baseurl`` and ``permalink`` override the values read from
    ``_config.yml`` when set.
    """

    model_config = {"frozen": True}

    name: str = "my-site"
    baseurl: str | None = None
    permalink: str | None = None
    image_dirs: list[str] = Field(default_factory=lambda: ["images"])
    extra_excludes: list[str] = Field(default_factory=list)


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = {"frozen": True}

    required_page_keys: list[str] = Field(default_factory=lambda: ["layout", "title"])
    required_post_keys: list[str] = Field(default_factory=lambda: ["title"])
    known_layouts: list[str] = Field(default_factory=list)
    orphan_assets: bool = True
    unreachable_pages: bool = True
    exempt_urls: list[str] = Field(default_factory=lambda: ["/404.html", "/search/"])


class NotebooksConfig(BaseModel):
    """[notebooks] section."""

    model_config = {"frozen": True}

    dir: str = "_notebooks"
    default_toc: bool = True
    default_badges: bool = True
    default_comments: bool = False


class NewConfig(BaseModel):
    """[new] section — defaults for scaffolded content."""

    model_config = {"frozen": True}

    pages_dir: str = "_pages"
    posts_dir: str = "_posts"
    page_layout: str = "page"
    post_layout: str = "post"


class ExportConfig(BaseModel):
    """[export] section."""

    model_config = {"frozen": True}

    include_hidden: bool = False
    graph_format: str = "json"
