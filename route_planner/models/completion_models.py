from typing import List, Optional
from pydantic import BaseModel, Field


# ------------------------------------------------------------
#  Chat-completion request (OpenRouter / OpenAI-compatible)
# ------------------------------------------------------------
class ChatMessage(BaseModel):
    role: str
    content: str


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    stream: bool = False


# ------------------------------------------------------------
#  Non-streaming completion envelope
# ------------------------------------------------------------
class ChoiceMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class Choice(BaseModel):
    index: Optional[int] = None
    message: ChoiceMessage = Field(default_factory=ChoiceMessage)
    finish_reason: Optional[str] = None


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[Choice] = Field(default_factory=list)
