"""
API Request Schemas

Pydantic models for the HTTP surface, converted to canonical call options.
File data travels base64-encoded.
"""

import base64
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from textgen_adapter.domain.types import (
    AssistantTurn,
    CallOptions,
    FilePart,
    ReasoningPart,
    ResponseFormat,
    SystemTurn,
    TextPart,
    ToolCallPart,
    ToolChoice,
    ToolDefinition,
    ToolResultPart,
    ToolTurn,
    Turn,
    UserTurn,
)


class TextPartIn(BaseModel):
    type: Literal["text"]
    text: str

    def to_domain(self) -> TextPart:
        return TextPart(text=self.text)


class ReasoningPartIn(BaseModel):
    type: Literal["reasoning"]
    text: str

    def to_domain(self) -> ReasoningPart:
        return ReasoningPart(text=self.text)


class FilePartIn(BaseModel):
    """File attachment; data is base64 (or a URL, which is not extracted)."""

    type: Literal["file"]
    data: str
    media_type: Optional[str] = None
    provider_options: Optional[dict[str, Any]] = None

    def to_domain(self) -> FilePart:
        if self.data.startswith(("http://", "https://")):
            data: Union[bytes, str] = self.data
        else:
            data = base64.b64decode(self.data)
        return FilePart(
            data=data,
            media_type=self.media_type,
            provider_options=self.provider_options,
        )

    @field_validator("data")
    @classmethod
    def validate_data(cls, v: str) -> str:
        if v.startswith(("http://", "https://")):
            return v
        try:
            base64.b64decode(v, validate=True)
        except ValueError as e:
            raise ValueError(f"File data must be base64 encoded: {str(e)}")
        return v


class ToolCallPartIn(BaseModel):
    type: Literal["tool-call"]
    tool_call_id: str = ""
    tool_name: str
    input: Any = Field(default_factory=dict)

    def to_domain(self) -> ToolCallPart:
        return ToolCallPart(
            tool_call_id=self.tool_call_id,
            tool_name=self.tool_name,
            input=self.input,
        )


class ToolResultPartIn(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = ""
    tool_name: str
    output: Any = None

    def to_domain(self) -> ToolResultPart:
        return ToolResultPart(
            tool_call_id=self.tool_call_id,
            tool_name=self.tool_name,
            output=self.output,
        )


UserPartIn = Annotated[Union[TextPartIn, FilePartIn], Field(discriminator="type")]
AssistantPartIn = Annotated[
    Union[TextPartIn, ReasoningPartIn, ToolCallPartIn], Field(discriminator="type")
]


class SystemMessageIn(BaseModel):
    role: Literal["system"]
    content: str

    def to_domain(self) -> SystemTurn:
        return SystemTurn(content=self.content)


class UserMessageIn(BaseModel):
    role: Literal["user"]
    content: list[UserPartIn]

    def to_domain(self) -> UserTurn:
        return UserTurn(content=[part.to_domain() for part in self.content])


class AssistantMessageIn(BaseModel):
    role: Literal["assistant"]
    content: list[AssistantPartIn]

    def to_domain(self) -> AssistantTurn:
        return AssistantTurn(content=[part.to_domain() for part in self.content])


class ToolMessageIn(BaseModel):
    role: Literal["tool"]
    content: list[ToolResultPartIn]

    def to_domain(self) -> ToolTurn:
        return ToolTurn(content=[part.to_domain() for part in self.content])


MessageIn = Annotated[
    Union[SystemMessageIn, UserMessageIn, AssistantMessageIn, ToolMessageIn],
    Field(discriminator="role"),
]


class ToolIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolChoiceIn(BaseModel):
    # Validated by the converter so unknown values surface as conversion errors
    type: str = "auto"
    tool_name: Optional[str] = None


class ResponseFormatIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "text"
    schema_: Optional[dict[str, Any]] = Field(None, alias="schema")


class GenerateRequest(BaseModel):
    """Generate / stream request body"""

    model: Optional[str] = Field(None, description="Backend model name, defaults to DEFAULT_MODEL")
    prompt: list[MessageIn] = Field(..., min_length=1)
    tools: Optional[list[ToolIn]] = None
    tool_choice: Optional[ToolChoiceIn] = None
    max_output_tokens: Optional[int] = Field(None, gt=0)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    seed: Optional[int] = None
    response_format: Optional[ResponseFormatIn] = None

    def to_options(self) -> CallOptions:
        prompt: list[Turn] = [message.to_domain() for message in self.prompt]
        return CallOptions(
            prompt=prompt,
            tools=[
                ToolDefinition(name=t.name, description=t.description, parameters=t.parameters)
                for t in self.tools
            ]
            if self.tools is not None
            else None,
            tool_choice=ToolChoice(type=self.tool_choice.type, tool_name=self.tool_choice.tool_name)
            if self.tool_choice
            else None,
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            frequency_penalty=self.frequency_penalty,
            presence_penalty=self.presence_penalty,
            seed=self.seed,
            response_format=ResponseFormat(
                type=self.response_format.type,
                schema=self.response_format.schema_,
            )
            if self.response_format
            else None,
        )


class SearchRequest(GenerateRequest):
    """Search model request body"""

    index: Optional[str] = Field(None, description="Search index, defaults to DEFAULT_SEARCH_INDEX")
