"""
Document Data Model

Defines the unit of retrievable context and the chat message shape.
"""

from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """
    A unit of retrievable context.

    Documents come from the vector index ("vector") or from the web search
    fallback ("web_search"); the provenance tag lives in metadata["type"].
    Immutable once created.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Text passed to the model")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Source identifier, title and provenance tag"
    )

    @property
    def source_type(self) -> str:
        return self.metadata.get("type", "vector")


class ChatMessage(BaseModel):
    """A single conversation turn."""
    role: Literal["user", "assistant", "system"]
    content: str
