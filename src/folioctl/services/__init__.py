"""Service layer — business logic over a :class:`~folioctl.infrastructure.site.Site`.

Every public service method returns a
:class:`~folioctl.services.result.ServiceResult`.
"""
