"""Models parts package: one domain class per module.

Prefer importing from `tinkeral.base.models` for the stable surface.
"""
