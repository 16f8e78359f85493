"""
SSE Decoding

Splits a byte stream into server-sent events and extracts their data payloads.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Optional

DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """
    Simple SSE Decoder: Splits bytes stream into event blocks and extracts data fields.

    - Uses empty line (\\n\\n) as event boundary
    - Supports CRLF (\\r\\n)
    - Only parses data: lines, ignores other fields
    """

    def __init__(self) -> None:
        # Holds only normalized (LF) bytes of the unfinished event
        self._buf = bytearray()
        # A trailing CR waits for the next chunk, it may be half of a CRLF
        self._pending_cr = False

    def feed(self, chunk: bytes) -> list[str]:
        """
        Append bytes and return list of parsed data payloads (one string per event).
        """
        if not chunk:
            return []

        if self._pending_cr:
            chunk = b"\r" + chunk
            self._pending_cr = False
        if chunk.endswith(b"\r"):
            chunk = chunk[:-1]
            self._pending_cr = True

        # A boundary may straddle the old buffer and the new chunk
        start = max(len(self._buf) - 1, 0)
        self._buf += chunk.replace(b"\r\n", b"\n")

        payloads: list[str] = []
        consumed = 0
        while True:
            end = self._buf.find(b"\n\n", start)
            if end == -1:
                break
            payload = self._extract_data_payload(bytes(self._buf[consumed:end]))
            if payload:
                payloads.append(payload)
            consumed = start = end + 2
        if consumed:
            del self._buf[:consumed]
        return payloads

    def flush(self) -> list[str]:
        """Return the payload of a trailing event that had no blank-line terminator."""
        remaining = bytes(self._buf)
        self._buf = bytearray()
        self._pending_cr = False
        payload = self._extract_data_payload(remaining)
        return [payload] if payload else []

    @staticmethod
    def _extract_data_payload(event: bytes) -> Optional[str]:
        data_lines: list[bytes] = []
        for line in event.split(b"\n"):
            if not line:
                continue
            if line.startswith(b"data:"):
                value = line[5:]
                if value.startswith(b" "):
                    value = value[1:]
                data_lines.append(value)
        if not data_lines:
            return None
        return b"\n".join(data_lines).decode("utf-8", errors="ignore")


async def iter_sse_payloads(byte_stream: AsyncIterator[bytes]) -> AsyncIterator[str]:
    """Yield data payloads as complete events arrive; reads one upstream chunk per pull."""
    decoder = SSEDecoder()
    async for chunk in byte_stream:
        for payload in decoder.feed(chunk):
            yield payload
    for payload in decoder.flush():
        yield payload


def encode_sse_data(payload: str) -> bytes:
    return f"data: {payload}\n\n".encode("utf-8")


def encode_sse_json(obj: dict[str, Any]) -> bytes:
    return encode_sse_data(json.dumps(obj, ensure_ascii=False))
