from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class PortraitRequest(BaseModel):
    """A validated mood submission, ready to be rendered into a prompt."""

    mood: str = Field(..., min_length=1, max_length=50)
    energy: int = Field(..., ge=1, le=10)
    tags: str = ""  # display string, already clipped and joined
    journal: str = Field("", max_length=2000)


class PortraitResponse(BaseModel):
    success: bool = True
    reading: Any


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    detail: Optional[str] = None
    retry_after: Optional[str] = Field(None, alias="retryAfter")


# Upstream wire shapes


class ContentBlock(BaseModel):
    type: str
    text: Optional[str] = None


class MessagesResponse(BaseModel):
    """Anthropic messages API: a list of typed content blocks."""

    provider: Literal["anthropic"] = "anthropic"
    content: List[ContentBlock] = []

    def first_text(self) -> str:
        for block in self.content:
            if block.type == "text":
                return block.text or ""
        return ""


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """OpenAI-style chat completions: a list of choices."""

    provider: Literal["openai"] = "openai"
    choices: List[ChatChoice] = []

    def first_text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


UpstreamResponse = Annotated[
    Union[MessagesResponse, ChatCompletionResponse],
    Field(discriminator="provider"),
]

upstream_response_adapter = TypeAdapter(UpstreamResponse)
