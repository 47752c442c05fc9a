"""BaseService — foundation for all folioctl services.

Every service receives a :class:`Site` at construction time. The Site
provides the record index, link resolver, graph, and tracked file writes.
Services own their write boundaries via ``self._site.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from folioctl.infrastructure.site import Site


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class CreateService(BaseService):
            def create_page(self, title: str, ...) -> ServiceResult:
                with self._site.transaction() as txn:
                    ...
    """

    def __init__(self, site: Site) -> None:
        self._site = site
