"""Prompt SQLModel definition and the closed enumerations it references."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from promptpolish.core.timeutils import utcnow


class PromptType(str, Enum):
    CREATIVE = "Creative"
    TECHNICAL = "Technical"
    INSTRUCTIONAL = "Instructional"
    CASUAL = "Casual"


class EnhancementFocus(str, Enum):
    PROFESSIONAL = "Professional"
    CREATIVE = "Creative"
    CONVERSATIONAL = "Conversational"
    TECHNICAL = "Technical"
    LLM_OPTIMIZED = "LLM-Optimized"


class Prompt(SQLModel, table=True):
    """
    A saved enhancement result.

    Ownership: each prompt belongs to exactly one user via user_id.
    `improvements` holds a JSON-serialized list of {category, detail}.
    """
    __tablename__ = "prompts"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    original_prompt: str = Field(sa_column=Column(Text, nullable=False))
    enhanced_prompt: str = Field(sa_column=Column(Text, nullable=False))
    prompt_type: str = Field(max_length=32, nullable=False)
    enhancement_focus: str = Field(max_length=32, nullable=False)
    improvements: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    is_favorite: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)
