"""Conversation turn model."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class TurnRole(str, Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """Individual turn in a conversation."""

    role: TurnRole = Field(..., description="Turn role: user or assistant")
    content: str = Field(..., description="Turn content")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Turn timestamp")

    def to_message(self) -> Dict[str, str]:
        """Format for the LLM API (role and content only)."""
        return {"role": self.role.value, "content": self.content}
