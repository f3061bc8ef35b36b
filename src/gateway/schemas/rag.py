"""Schemas for the RAG backend wire protocol."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

WILDCARD_VALUES = frozenset({"", "*", "any"})


class CapabilityMode(BaseModel):
    """A (language, domain) pair a backend claims to serve.

    ``None``, ``""``, ``"*"`` and ``"any"`` mean "any value" for either field.
    The original casing is kept; matching happens on normalized keys.
    """

    model_config = ConfigDict(frozen=True)

    language: str | None = Field(default=None, description="Language code, e.g. 'es'")
    domain: str | None = Field(default=None, description="Domain, e.g. 'legal'")

    @property
    def is_concrete(self) -> bool:
        """True when neither language nor domain is a wildcard."""
        return not is_wildcard(self.language) and not is_wildcard(self.domain)


def is_wildcard(value: str | None) -> bool:
    return value is None or value.strip().lower() in WILDCARD_VALUES


class CapabilityList(BaseModel):
    """Response body of ``GET /get_config``."""

    modes: list[CapabilityMode] = Field(default_factory=list)


class CapabilityInfo(BaseModel):
    """Display-ready capability entry."""

    language: str | None = Field(..., description="Language, or null for any language")
    domain: str | None = Field(..., description="Domain, or null for any domain")
    label: str = Field(..., description="Human readable label")


class Citation(BaseModel):
    """A retrieved passage cited by a backend answer.

    Opaque to the gateway beyond ``title`` and ``url``; unknown fields are kept.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    title: str = ""
    passage: str = ""
    timestamp: str | None = None
    url: str | None = None
    metadata: dict[str, Any] | None = None


class HistoryMessage(BaseModel):
    """A prior turn sent to ``/predict`` as conversation history."""

    role: Literal["system", "user", "assistant"]
    content: str


class RagChunk(BaseModel):
    """One event of a prediction stream.

    On the wire ``response`` is the cumulative answer so far; once yielded by
    a provider it is the delta since the previous chunk.
    """

    response: str = ""
    contexts: list[Citation] | None = None


class ConfigureRequest(BaseModel):
    """Request body of ``POST /configure``."""

    prompt: str
    available_configs: list[CapabilityMode] = Field(default_factory=list)
    language: str | None = None
    domain: str | None = None


class PredictRequest(BaseModel):
    """Request body of ``POST /predict``."""

    history: list[HistoryMessage] = Field(default_factory=list)
    prompt: str
    language: str
    domain: str
