"""Shared pytest fixtures and test helpers for folioctl tests."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from folioctl.config.settings import FolioSettings
from folioctl.infrastructure.site import Site
from folioctl.services.telemetry import disable_telemetry

NOTEBOOK_HEADER = """\
# Test-Time Augmentation for Tabular Data
> Averaging predictions over perturbed copies of each row.

- toc: true
- badges: true
- comments: false
- categories: [jupyter, ml]
- image: images/chart-preview.png"""

# Tiny valid PNG header; content is never decoded.
PNG_BYTES = b"\x89PNG\r\n\x1a\n"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's FOLIOCTL_* environment out of the tests."""
    monkeypatch.delenv("FOLIOCTL_CONFIG", raising=False)
    monkeypatch.delenv("FOLIOCTL_SITE__BASEURL", raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """``-v`` turns span collection on for the rest of the context."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Temporary Jekyll/fastpages site with no content issues.

    This is the single source of truth for the test site layout. All
    site fixtures (site, _isolated_site) build on this.
    """
    write(tmp_path, "_config.yml", "title: Portfolio\nbaseurl: ''\nexclude: [docs]\n")
    for layout in ("default", "page", "post"):
        write(tmp_path, f"_layouts/{layout}.html", "<html>{{ content }}</html>\n")
    write(
        tmp_path,
        "index.md",
        page_text(
            {"layout": "default", "title": "Home"},
            "Welcome. See [About](about/) and [Portfolio]({{ site.baseurl }}/portfolio/).\n",
        ),
    )
    write(
        tmp_path,
        "_pages/about.md",
        page_text(
            {"layout": "page", "title": "About", "permalink": "/about/"},
            "![me](/images/me.png)\n\n"
            "My first post: [hello]({% post_url 2020-05-01-hello-world %}).\n"
            "Also see the [portfolio](/portfolio/).\n",
        ),
    )
    write(
        tmp_path,
        "_pages/portfolio.md",
        page_text(
            {"layout": "page", "title": "Portfolio", "permalink": "/portfolio/"},
            "Back to [about](/about/).\n",
        ),
    )
    write(
        tmp_path,
        "_posts/2020-05-01-hello-world.md",
        page_text(
            {"layout": "post", "title": "Hello World", "categories": "[blog]"},
            "Back [home](/).\n",
        ),
    )
    write_notebook(
        tmp_path,
        "_notebooks/2020-06-01-tta-tabular.ipynb",
        NOTEBOOK_HEADER,
        "## Results\n\n![chart](my_icons/chart.png)\n",
    )
    write_bytes(tmp_path, "_notebooks/my_icons/chart.png", PNG_BYTES)
    write_bytes(tmp_path, "images/me.png", PNG_BYTES)
    write_bytes(tmp_path, "images/chart-preview.png", PNG_BYTES)
    write(tmp_path, "README.md", "# repo readme, not a page\n")
    write(tmp_path, "_site/index.html", "<html>built</html>\n")
    return tmp_path


@pytest.fixture
def settings(site_root: Path) -> FolioSettings:
    return FolioSettings.from_cli(site_root=site_root)


@pytest.fixture
def site(settings: FolioSettings) -> Site:
    """Site repository over the temp site."""
    return Site(settings)


@pytest.fixture
def _isolated_site(site_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp site root so the CLI discovers it.

    Use via ``@pytest.mark.usefixtures("_isolated_site")`` on command test
    classes.
    """
    monkeypatch.chdir(site_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write(root: Path, rel: str, text: str) -> Path:
    """Write a text file below *root*, creating parent directories."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_bytes(root: Path, rel: str, data: bytes) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def page_text(fm: dict[str, str], body: str) -> str:
    """Front-matter block from already-YAML-formatted values plus a body."""
    lines = ["---", *(f"{k}: {v}" for k, v in fm.items()), "---", ""]
    return "\n".join(lines) + body


def notebook_json(*markdown_cells: str, first_cell_type: str = "markdown") -> str:
    """nbformat-4 JSON with the given markdown cells and one code cell."""
    cells: list[dict[str, Any]] = []
    for idx, source in enumerate(markdown_cells):
        cells.append(
            {
                "cell_type": first_cell_type if idx == 0 else "markdown",
                "metadata": {},
                "source": source.splitlines(keepends=True),
            }
        )
    cells.append(
        {
            "cell_type": "code",
            "execution_count": 1,
            "metadata": {},
            "outputs": [],
            "source": ["print('hi')\n"],
        }
    )
    return json.dumps({"cells": cells, "metadata": {}, "nbformat": 4, "nbformat_minor": 4})


def write_notebook(root: Path, rel: str, *markdown_cells: str) -> Path:
    return write(root, rel, notebook_json(*markdown_cells))


def issues_for(data: dict[str, Any], category: str) -> list[dict[str, Any]]:
    """Issues of one category from a check result payload."""
    return [i for i in data["issues"] if i["category"] == category]
