"""Turning raw server-sent completion chunks into plain generated text."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import AsyncIterator, Callable
from typing import Any

logger = logging.getLogger(__name__)

ByteStream = AsyncIterator[bytes]
StreamProcessor = Callable[[ByteStream], ByteStream]

_DATA_PREFIX = "data: "
_TIMING_KEYS = (
    "predicted_ms",
    "predicted_n",
    "predicted_per_second",
    "predicted_per_token_ms",
    "prompt_ms",
    "prompt_n",
    "prompt_per_second",
    "prompt_per_token_ms",
)


def calculate_tokens_per_second(predicted_n: float, predicted_ms: float) -> float:
    """Generation speed from a token count and a duration in milliseconds."""
    predicted_seconds = predicted_ms / 1000.0
    if predicted_seconds == 0:
        if predicted_n == 0 or math.isnan(predicted_n):
            return math.nan
        return math.copysign(math.inf, predicted_n) * math.copysign(1.0, predicted_seconds)
    return predicted_n / predicted_seconds


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _log_timings(timings: Any) -> None:
    if not isinstance(timings, dict):
        return
    if not all(_is_number(timings.get(key)) for key in _TIMING_KEYS):
        return
    rate = calculate_tokens_per_second(float(timings["predicted_n"]), float(timings["predicted_ms"]))
    logger.info("Tokens generated per second: %.2f", rate)


def process_chunk(chunk_str: str) -> str:
    """Collect the ``content`` of every ``data:`` line in a chunk."""
    pieces: list[str] = []
    for raw_line in chunk_str.split("\n"):
        line = raw_line.removesuffix("\r")
        if not line.startswith(_DATA_PREFIX):
            continue
        try:
            payload = json.loads(line[len(_DATA_PREFIX):])
        except ValueError:
            continue
        if not isinstance(payload, dict):
            continue
        content = payload.get("content")
        if isinstance(content, str):
            pieces.append(content)
        if "timings" in payload:
            _log_timings(payload["timings"])
    return "".join(pieces)


async def llamacpp_process_stream(stream: ByteStream) -> ByteStream:
    """Yield the generated text of each chunk, or empty bytes when it has none."""
    async for chunk in stream:
        try:
            text = bytes(chunk).decode("utf-8")
        except UnicodeDecodeError:
            logger.error("Failed to parse chunk as UTF-8")
            yield b""
            continue
        yield process_chunk(text).encode("utf-8")


def qwen_process_stream(stream: ByteStream) -> ByteStream:
    """Stream processing for Qwen servers, which use the same wire format."""
    return llamacpp_process_stream(stream)