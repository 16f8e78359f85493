"""
Streaming Module

Chunk aggregation for real backend streams and replay of blocking results
as simulated streams.
"""

from .mapper import ChunkAggregator, EventStream, map_stream
from .simulate import simulate_stream, simulated_events
from .sse import (
    DONE_SENTINEL,
    SSEDecoder,
    encode_sse_data,
    encode_sse_json,
    iter_sse_payloads,
)

__all__ = [
    "ChunkAggregator",
    "DONE_SENTINEL",
    "EventStream",
    "SSEDecoder",
    "encode_sse_data",
    "encode_sse_json",
    "iter_sse_payloads",
    "map_stream",
    "simulate_stream",
    "simulated_events",
]
