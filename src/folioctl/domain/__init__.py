"""Domain layer — record kinds, front-matter, notebooks, links, and URLs.

This layer depends only on stdlib, pydantic, and ruamel.yaml.
It must never import from services, infrastructure, commands, or config.
"""
