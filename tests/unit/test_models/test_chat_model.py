"""
Chat model tests
"""

from unittest.mock import AsyncMock, patch

import pytest

from textgen_adapter.common.errors import (
    MultipleImagesError,
    UnsupportedResponseFormatError,
    UnsupportedToolChoiceError,
    UpstreamError,
)
from textgen_adapter.config import get_settings
from textgen_adapter.domain.types import (
    AssistantTurn,
    CallOptions,
    FilePart,
    FinishReason,
    ResponseFormat,
    StreamEventType,
    TextPart,
    ToolCallPart,
    ToolChoice,
    ToolDefinition,
    ToolResultPart,
    ToolTurn,
    Usage,
    UserTurn,
)
from textgen_adapter.models.chat import ChatLanguageModel
from textgen_adapter.providers.base import BackendClient
from tests.fakes import FakeBackendClient, assert_well_framed, collect, event_types, sse

MODEL = "@cf/meta/llama-3.1-8b-instruct"
WEATHER = ToolDefinition(name="weather", parameters={"type": "object"})


def _model(client):
    return ChatLanguageModel(model_id=MODEL, client=client)


class TestGetArgs:
    def test_sampling_settings_mapped(self, user_prompt):
        args, warnings = _model(FakeBackendClient()).get_args(
            CallOptions(prompt=user_prompt, max_output_tokens=64, temperature=0.2, top_p=0.9, seed=7)
        )

        assert args["model"] == MODEL
        assert args["max_tokens"] == 64
        assert args["temperature"] == 0.2
        assert args["top_p"] == 0.9
        assert args["random_seed"] == 7
        assert warnings == []

    def test_penalties_produce_warnings(self, user_prompt):
        _, warnings = _model(FakeBackendClient()).get_args(
            CallOptions(prompt=user_prompt, frequency_penalty=0.5, presence_penalty=0.1)
        )
        assert [w.setting for w in warnings] == ["frequencyPenalty", "presencePenalty"]
        assert all(w.type == "unsupported-setting" for w in warnings)

    @pytest.mark.parametrize("fmt", ["json", "json-schema"])
    def test_json_format_disables_tools(self, user_prompt, fmt):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        args, _ = _model(FakeBackendClient()).get_args(
            CallOptions(
                prompt=user_prompt,
                tools=[WEATHER],
                response_format=ResponseFormat(type=fmt, schema=schema),
            )
        )

        assert args["response_format"] == {"type": "json_schema", "json_schema": schema}
        assert args["tools"] is None

    def test_unknown_format_raises(self, user_prompt):
        with pytest.raises(UnsupportedResponseFormatError) as exc_info:
            _model(FakeBackendClient()).get_args(
                CallOptions(prompt=user_prompt, response_format=ResponseFormat(type="xml"))
            )
        assert exc_info.value.message == "Unsupported type: xml"

    def test_unknown_tool_choice_raises(self, user_prompt):
        with pytest.raises(UnsupportedToolChoiceError):
            _model(FakeBackendClient()).get_args(
                CallOptions(prompt=user_prompt, tools=[WEATHER], tool_choice=ToolChoice("maybe"))
            )


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generate_text(self, user_prompt):
        client = FakeBackendClient(
            output={"response": "Sunny.", "usage": {"prompt_tokens": 8, "completion_tokens": 2}}
        )

        result = await _model(client).generate(CallOptions(prompt=user_prompt, temperature=0.5))

        assert [p.text for p in result.content] == ["Sunny."]
        assert result.finish_reason == FinishReason.STOP
        assert result.usage == Usage(8, 2, 10)

        method, model, body = client.calls[0]
        assert (method, model) == ("run", MODEL)
        assert body["messages"] == [{"role": "user", "content": "What is the weather in Paris?"}]
        assert body["temperature"] == 0.5
        assert "stream" not in body
        assert "max_tokens" not in body
        assert "image" not in body

    @pytest.mark.asyncio
    async def test_generate_with_tool_call(self, user_prompt):
        client = FakeBackendClient(
            output={
                "response": None,
                "tool_calls": [{"name": "weather", "arguments": {"city": "Paris"}}],
            }
        )

        result = await _model(client).generate(CallOptions(prompt=user_prompt, tools=[WEATHER]))

        assert result.content[1].tool_call_id == "functions.weather:0"
        assert result.content[1].input == {"city": "Paris"}
        assert client.calls[0][2]["tools"][0]["function"]["name"] == "weather"
        assert "tool_choice" not in client.calls[0][2]

    @pytest.mark.asyncio
    async def test_single_image_sent_as_byte_list(self):
        prompt = [
            UserTurn(
                content=[
                    TextPart(text="Describe"),
                    FilePart(data=b"\x01\x02\xff", media_type="image/png"),
                ]
            )
        ]
        client = FakeBackendClient(output={"response": "A dot."})

        await _model(client).generate(CallOptions(prompt=prompt))

        assert client.calls[0][2]["image"] == [1, 2, 255]

    @pytest.mark.asyncio
    async def test_multiple_images_rejected_before_call(self):
        prompt = [
            UserTurn(
                content=[
                    FilePart(data=b"a", media_type="image/png"),
                    FilePart(data=b"b", media_type="image/png"),
                ]
            )
        ]
        client = FakeBackendClient()

        with pytest.raises(MultipleImagesError):
            await _model(client).generate(CallOptions(prompt=prompt))
        with pytest.raises(MultipleImagesError):
            await _model(client).stream(CallOptions(prompt=prompt))
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, user_prompt):
        client = FakeBackendClient(error=UpstreamError("down"))
        with pytest.raises(UpstreamError):
            await _model(client).generate(CallOptions(prompt=user_prompt))


class TestStream:
    @pytest.mark.asyncio
    async def test_streams_from_backend(self, user_prompt):
        client = FakeBackendClient(chunks=sse({"response": "Sun"}, {"response": "ny"}, "[DONE]"))

        events = await collect(await _model(client).stream(CallOptions(prompt=user_prompt)))

        assert event_types(events) == [
            "stream-start",
            "text-start",
            "text-delta",
            "text-delta",
            "text-end",
            "finish",
        ]
        method, _, body = client.calls[0]
        assert method == "run_stream"
        assert body["stream"] is True
        assert client.stream.closed
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_unread_stream_releases_backend(self, user_prompt):
        client = FakeBackendClient(chunks=sse({"response": "Sunny"}))

        events = await _model(client).stream(CallOptions(prompt=user_prompt))
        await events.aclose()

        assert client.stream.closed
        assert client.stream.consumed == 0

    @pytest.mark.asyncio
    async def test_tools_after_user_turn_are_simulated(self, user_prompt):
        client = FakeBackendClient(
            output={
                "response": "",
                "tool_calls": [{"name": "weather", "arguments": '{"city":"Paris"}'}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 4},
            }
        )

        events = await collect(
            await _model(client).stream(
                CallOptions(prompt=user_prompt, tools=[WEATHER], frequency_penalty=1.0)
            )
        )

        assert [c[0] for c in client.calls] == ["run"]
        assert "stream" not in client.calls[0][2]
        assert events[0].type == StreamEventType.STREAM_START
        assert events[0].warnings[0].setting == "frequencyPenalty"
        tool_events = [e for e in events if e.type == StreamEventType.TOOL_CALL]
        assert tool_events[0].tool_call.input == {"city": "Paris"}
        assert events[-1].usage == Usage(3, 4, 7)
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_tools_after_tool_turn_stream_directly(self, user_prompt):
        prompt = user_prompt + [
            AssistantTurn(content=[ToolCallPart(tool_name="weather", input={"city": "Paris"})]),
            ToolTurn(content=[ToolResultPart(tool_name="weather", output={"temp": 21})]),
        ]
        client = FakeBackendClient(chunks=sse({"response": "It is 21."}))

        events = await collect(await _model(client).stream(CallOptions(prompt=prompt, tools=[WEATHER])))

        assert client.calls[0][0] == "run_stream"
        messages = client.calls[0][2]["messages"]
        assert messages[1]["tool_calls"][0]["id"] == messages[2]["tool_call_id"] == "functions.weather:0"
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_json_mode_streams_directly(self, user_prompt):
        client = FakeBackendClient(chunks=sse({"response": '{"a":"b"}'}))

        await collect(
            await _model(client).stream(
                CallOptions(
                    prompt=user_prompt,
                    tools=[WEATHER],
                    response_format=ResponseFormat(type="json", schema={"type": "object"}),
                )
            )
        )

        assert client.calls[0][0] == "run_stream"
        assert "tools" not in client.calls[0][2]

    @pytest.mark.asyncio
    async def test_stream_error_raised_before_events(self, user_prompt):
        client = FakeBackendClient(error=UpstreamError("down"))
        with pytest.raises(UpstreamError):
            await _model(client).stream(CallOptions(prompt=user_prompt))


class TestDefaults:
    def test_model_and_client_defaults(self):
        client = AsyncMock(spec=BackendClient)
        with patch("textgen_adapter.models.chat.get_backend_client", return_value=client):
            model = ChatLanguageModel()

        assert model.model_id == get_settings().DEFAULT_MODEL
        assert model.client is client

    @pytest.mark.asyncio
    async def test_generate_awaits_backend_once(self, user_prompt):
        client = AsyncMock(spec=BackendClient)
        client.run.return_value = {"response": "ok"}

        result = await _model(client).generate(CallOptions(prompt=user_prompt))

        client.run.assert_awaited_once()
        client.run_stream.assert_not_awaited()
        assert result.content[0].text == "ok"
