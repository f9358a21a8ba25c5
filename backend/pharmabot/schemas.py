from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --------------------
# Chatbot
# --------------------


class ChatIn(_CamelModel):
    message: Optional[str] = None
    session_id: Optional[str] = Field(None, alias="sessionId")


class ChatOut(_CamelModel):
    success: bool = True
    reply: str
    session_id: str = Field(alias="sessionId")
    timestamp: datetime
    source: str
    model: Optional[str] = None
    is_fallback: bool = Field(alias="isFallback")
    response_length: Optional[int] = Field(None, alias="responseLength")
    backend_available: bool = Field(alias="backendAvailable")


class ClearIn(_CamelModel):
    session_id: Optional[str] = Field(None, alias="sessionId")


class ClearOut(BaseModel):
    success: bool = True
    message: str


class SuggestionsOut(BaseModel):
    success: bool = True
    suggestions: List[str]


class BackendTestOut(_CamelModel):
    success: bool = True
    message: str
    backend_status: str = Field(alias="backendStatus")
    model: Optional[str] = None
    test_response: Optional[str] = Field(None, alias="testResponse")
    platform_type: str = Field("pharmacy-marketplace", alias="platformType")
    timestamp: datetime


class ErrorOut(BaseModel):
    success: bool = False
    error: str
    message: Optional[str] = None


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
    environment: str
