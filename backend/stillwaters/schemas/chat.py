"""
Pydantic schemas for the /api/chat contract.

The client reads the answer positionally: the first interpretation is the
primary one, and its first scripture is the citation shown as a verse.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request schema for asking a question"""
    question: str = Field(..., min_length=1)

    # Whitespace-only questions fail min_length instead of reaching the model
    model_config = {"str_strip_whitespace": True}


class Scripture(BaseModel):
    reference: str
    text: str
    translation: str = ""


class Interpretation(BaseModel):
    tradition: str = "General"
    view: str
    scriptures: List[Scripture] = Field(default_factory=list)


class ChatAnswer(BaseModel):
    """Structured answer returned by both the mock and the live provider"""
    question: Optional[str] = None
    interpretations: List[Interpretation] = Field(..., min_length=1)
    primary_scripture: Optional[Scripture] = None
    context: Optional[str] = None
    application: Optional[str] = None
    related_verses: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
