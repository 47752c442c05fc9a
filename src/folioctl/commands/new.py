"""Command group: scaffold pages, posts, and notebook posts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from folioctl.commands._base import FolioGroup
from folioctl.services.create import CreateService

if TYPE_CHECKING:
    from folioctl.commands._context import AppContext

_NEW_EXAMPLES = """\
  folioctl new page "Portfolio"
  folioctl new post "Hello World" --category blog
  folioctl new notebook "Gradient Accumulation in PyTorch" -C pytorch -C jupyter"""


def _split_categories(values: tuple[str, ...]) -> list[str]:
    """Accept both ``-C a -C b`` and ``-C a,b``."""
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


@click.group(cls=FolioGroup, examples=_NEW_EXAMPLES)
@click.pass_obj
def new(app: AppContext) -> None:
    """Create new content from templates."""


@new.command(
    examples="""\
  folioctl new page "About"
  folioctl new page "Portfolio" --permalink /portfolio/
  folioctl new page "CV" --layout default --description 'Curriculum vitae'"""
)
@click.argument("title")
@click.option("--permalink", default=None, help="Output URL (default: /<slug>/).")
@click.option("--layout", default=None, help="Layout name (default from [new] page_layout).")
@click.option("--description", default=None, help="Short description.")
@click.pass_obj
def page(
    app: AppContext,
    title: str,
    permalink: str | None,
    layout: str | None,
    description: str | None,
) -> None:
    """Create a standalone page."""
    svc = CreateService(app.site)
    app.emit(
        svc.create_page(title, permalink=permalink, layout=layout, description=description)
    )


@new.command(
    examples="""\
  folioctl new post "Hello World"
  folioctl new post "Year in Review" --date 2021-12-31 -C personal"""
)
@click.argument("title")
@click.option("--date", "post_date", default=None, help="Post date YYYY-MM-DD (default: today).")
@click.option("-C", "--category", "categories", multiple=True, help="Category (repeatable).")
@click.option("--description", default=None, help="Short description.")
@click.pass_obj
def post(
    app: AppContext,
    title: str,
    post_date: str | None,
    categories: tuple[str, ...],
    description: str | None,
) -> None:
    """Create a markdown blog post."""
    svc = CreateService(app.site)
    app.emit(
        svc.create_post(
            title,
            date=post_date,
            categories=_split_categories(categories),
            description=description,
        )
    )


@new.command(
    examples="""\
  folioctl new notebook "Test-Time Augmentation for Tabular Data" -C jupyter
  folioctl new notebook "Gradient Accumulation" --date 2020-06-01 --no-toc \\
      --image images/grad-accum.png"""
)
@click.argument("title")
@click.option("--date", "post_date", default=None, help="Post date YYYY-MM-DD (default: today).")
@click.option("-C", "--category", "categories", multiple=True, help="Category (repeatable).")
@click.option("--summary", default=None, help="One-line summary shown under the title.")
@click.option("--toc/--no-toc", default=None, help="Table of contents.")
@click.option("--badges/--no-badges", default=None, help="Colab/GitHub/Binder badges.")
@click.option("--comments/--no-comments", default=None, help="Enable comments.")
@click.option("--image", default=None, help="Preview image path.")
@click.pass_obj
def notebook(
    app: AppContext,
    title: str,
    post_date: str | None,
    categories: tuple[str, ...],
    summary: str | None,
    toc: bool | None,
    badges: bool | None,
    comments: bool | None,
    image: str | None,
) -> None:
    """Create a Jupyter notebook post with a fastpages header cell."""
    svc = CreateService(app.site)
    app.emit(
        svc.create_notebook(
            title,
            date=post_date,
            categories=_split_categories(categories),
            summary=summary,
            toc=toc,
            badges=badges,
            comments=comments,
            image=image,
        )
    )
