"""Interface parts package: one Protocol per module."""
