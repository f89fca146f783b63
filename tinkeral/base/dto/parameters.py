"""
Pydantic DTOs validating sampling parameters and settings payloads.

Purpose
-------
Settings files and CLI flags arrive as loose mappings. These DTOs enforce
numeric bounds before values become :class:`ModelParameters` so bad input is
rejected at the edge with a ``pydantic.ValidationError`` instead of surfacing
later as a provider ``validation`` error.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import ModelParameters


class ModelParametersDTO(BaseModel):
    """Validated sampling parameters.

    Accepts both snake_case and the camelCase keys used in persisted records.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1024, gt=0, alias="maxTokens")
    top_p: float = Field(0.9, ge=0.0, le=1.0, alias="topP")
    top_k: Optional[int] = Field(None, gt=0, alias="topK")
    frequency_penalty: Optional[float] = Field(None, ge=-2.0, le=2.0, alias="frequencyPenalty")
    presence_penalty: Optional[float] = Field(None, ge=-2.0, le=2.0, alias="presencePenalty")
    stop_sequences: List[str] = Field(default_factory=list, alias="stopSequences")

    @model_validator(mode="after")
    def _validate_stop_sequences(self) -> "ModelParametersDTO":
        """Reject blank stop sequences; they would end generation immediately."""
        if any(not s for s in self.stop_sequences):
            raise ValueError("stop_sequences must not contain empty strings")
        return self

    def to_parameters(self) -> ModelParameters:
        return ModelParameters(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            top_k=self.top_k,
            frequency_penalty=self.frequency_penalty,
            presence_penalty=self.presence_penalty,
            stop_sequences=list(self.stop_sequences),
        )


class SettingsFileDTO(BaseModel):
    """Shape of the optional settings file (JSON or YAML).

    Example::

        default_model: gemini-1.5-pro
        default_parameters:
          temperature: 0.4
        api_keys:
          google: "..."
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    default_model: Optional[str] = Field(None, alias="defaultModel")
    default_parameters: Optional[ModelParametersDTO] = Field(None, alias="defaultParameters")
    api_keys: Dict[str, str] = Field(default_factory=dict, alias="apiKeys")


__all__ = ["ModelParametersDTO", "SettingsFileDTO"]
