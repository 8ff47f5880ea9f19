from pydantic import BaseModel, ConfigDict, Field


class AssistantMessage(BaseModel):
    """One message sent to the knowledge-base assistant."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(default="user", description="Role of the message sender")
    content: str = Field(description="Content of the message")


class AssistantChatRequest(BaseModel):
    """Request body for the assistant chat endpoint."""

    messages: list[AssistantMessage]
    stream: bool = False
    model: str = "gpt-4o"
