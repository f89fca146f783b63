"""Validated DTOs used at the configuration edge."""

from .parameters import ModelParametersDTO, SettingsFileDTO

__all__ = ["ModelParametersDTO", "SettingsFileDTO"]
