"""
Generation API

Exposes the chat and search models over HTTP. Streaming endpoints return
canonical events as server-sent events terminated by [DONE].
"""

import logging
from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from textgen_adapter.api.deps import BackendClientDep
from textgen_adapter.api.schemas import GenerateRequest, SearchRequest
from textgen_adapter.domain.types import StreamEvent
from textgen_adapter.models import ChatLanguageModel, SearchChatLanguageModel
from textgen_adapter.streaming.sse import DONE_SENTINEL, encode_sse_data, encode_sse_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Generation"])


async def _encode_events(events: AsyncIterator[StreamEvent]) -> AsyncIterator[bytes]:
    try:
        async for event in events:
            yield encode_sse_json(event.to_dict())
    except Exception:
        # Headers are already sent; the connection is closed abnormally.
        logger.error("Stream failed after the first event", exc_info=True)
        raise
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
    yield encode_sse_data(DONE_SENTINEL)


def _streaming_response(events: AsyncIterator[StreamEvent]) -> StreamingResponse:
    return StreamingResponse(
        _encode_events(events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/generate")
async def generate(body: GenerateRequest, client: BackendClientDep):
    """
    Blocking generation

    Returns content parts, finish reason, usage and warnings.
    """
    model = ChatLanguageModel(model_id=body.model, client=client)
    result = await model.generate(body.to_options())
    return result.to_dict()


@router.post("/stream")
async def stream(body: GenerateRequest, client: BackendClientDep):
    """
    Streaming generation

    Errors raised before the first event are returned as JSON error responses.
    """
    model = ChatLanguageModel(model_id=body.model, client=client)
    events = await model.stream(body.to_options())
    return _streaming_response(events)


@router.post("/search/generate")
async def search_generate(body: SearchRequest, client: BackendClientDep):
    model = SearchChatLanguageModel(index=body.index, client=client)
    result = await model.generate(body.to_options())
    return result.to_dict()


@router.post("/search/stream")
async def search_stream(body: SearchRequest, client: BackendClientDep):
    model = SearchChatLanguageModel(index=body.index, client=client)
    events = await model.stream(body.to_options())
    return _streaming_response(events)
