"""Infrastructure layer — discovery, the Site repository, link graph, templates.

This layer depends on stdlib, the domain layer, and third-party libs
(NetworkX, Jinja2, ruamel.yaml). It must never import from services,
commands, or output.
"""
