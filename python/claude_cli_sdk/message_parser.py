"""Decoding of CLI output lines into typed messages.

Parsing is lenient: unknown message types, unknown content
block kinds and extra fields are ignored so that newer CLI versions keep
working with this SDK.
"""

from __future__ import annotations

import json
import math
from typing import Any

from claude_cli_sdk.control import CONTROL_REQUEST, InboundControlRequest
from claude_cli_sdk.exceptions import CLIJSONDecodeError
from claude_cli_sdk.types import (
    AssistantMessage,
    ContentBlock,
    Message,
    ResultMessage,
    StreamEvent,
    SystemMessage,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

__all__ = ["decode_frame", "parse_message", "parse_content_blocks"]


def decode_frame(line: bytes | str) -> dict[str, Any]:
    """Parse one output line into a JSON object.

    Raises
    ------
    CLIJSONDecodeError
        If the line is not valid JSON or is not an object.
    """
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CLIJSONDecodeError(text, exc) from exc
    if not isinstance(data, dict):
        raise CLIJSONDecodeError(text, ValueError(f"expected a JSON object, got {type(data).__name__}"))
    return data


def parse_message(data: dict[str, Any]) -> Message | InboundControlRequest | None:
    """Convert a decoded frame into a message.

    Returns an :class:`InboundControlRequest` for CLI-initiated control
    requests, and ``None`` for anything that is not a conversation
    message.
    """
    msg_type = data.get("type")
    if msg_type == "user":
        return _parse_user_message(data)
    if msg_type == "assistant":
        return _parse_assistant_message(data)
    if msg_type == "system":
        return _parse_system_message(data)
    if msg_type == "result":
        return _parse_result_message(data)
    if msg_type == "stream_event":
        return _parse_stream_event(data)
    if msg_type == CONTROL_REQUEST:
        return InboundControlRequest.from_dict(data)
    return None


def parse_content_blocks(items: list[Any]) -> list[ContentBlock]:
    """Parse a content list, skipping entries that are not recognised."""
    blocks: list[ContentBlock] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        block = _parse_content_block(item)
        if block is not None:
            blocks.append(block)
    return blocks


def _parse_content_block(item: dict[str, Any]) -> ContentBlock | None:
    block_type = item.get("type")

    if block_type == "text":
        text = item.get("text")
        if not isinstance(text, str):
            return None
        return TextBlock(text=text)

    if block_type == "thinking":
        thinking = item.get("thinking")
        if not isinstance(thinking, str):
            return None
        return ThinkingBlock(thinking=thinking, signature=_str(item, "signature") or "")

    if block_type == "tool_use":
        block_id, name = item.get("id"), item.get("name")
        if not isinstance(block_id, str) or not isinstance(name, str):
            return None
        tool_input = item.get("input")
        return ToolUseBlock(
            id=block_id,
            name=name,
            input=tool_input if isinstance(tool_input, dict) else {},
        )

    if block_type == "tool_result":
        tool_use_id = item.get("tool_use_id")
        if not isinstance(tool_use_id, str):
            return None
        is_error = item.get("is_error")
        return ToolResultBlock(
            tool_use_id=tool_use_id,
            content=item.get("content"),
            is_error=is_error if isinstance(is_error, bool) else None,
        )

    return None


def _parse_user_message(data: dict[str, Any]) -> UserMessage:
    content: str | list[ContentBlock] = ""
    message = data.get("message")
    if isinstance(message, dict):
        raw = message.get("content")
        if isinstance(raw, str):
            content = raw
        elif isinstance(raw, list):
            content = parse_content_blocks(raw)
    return UserMessage(
        content=content,
        uuid=_str(data, "uuid"),
        parent_tool_use_id=_str(data, "parent_tool_use_id"),
    )


def _parse_assistant_message(data: dict[str, Any]) -> AssistantMessage:
    model = ""
    content: list[ContentBlock] = []
    message = data.get("message")
    if isinstance(message, dict):
        model = _str(message, "model") or ""
        raw = message.get("content")
        if isinstance(raw, list):
            content = parse_content_blocks(raw)
    return AssistantMessage(
        content=content,
        model=model,
        parent_tool_use_id=_str(data, "parent_tool_use_id"),
        error=_str(data, "error"),
    )


def _parse_system_message(data: dict[str, Any]) -> SystemMessage:
    payload = data.get("data")
    if not isinstance(payload, dict):
        # Some CLI versions flatten the payload into the frame itself.
        payload = {k: v for k, v in data.items() if k not in ("type", "subtype", "data")}
    return SystemMessage(subtype=_str(data, "subtype") or "", data=payload)


def _parse_result_message(data: dict[str, Any]) -> ResultMessage:
    cost = data.get("total_cost_usd")
    usage = data.get("usage")
    return ResultMessage(
        subtype=_str(data, "subtype") or "",
        duration_ms=_int(data, "duration_ms"),
        duration_api_ms=_int(data, "duration_api_ms"),
        is_error=data.get("is_error") is True,
        num_turns=_int(data, "num_turns"),
        session_id=_str(data, "session_id") or "",
        total_cost_usd=float(cost) if _is_number(cost) else None,
        usage=usage if isinstance(usage, dict) else None,
        result=_str(data, "result"),
        structured_output=data.get("structured_output"),
    )


def _parse_stream_event(data: dict[str, Any]) -> StreamEvent:
    event = data.get("event")
    return StreamEvent(
        uuid=_str(data, "uuid") or "",
        session_id=_str(data, "session_id") or "",
        event=event if isinstance(event, dict) else {},
        parent_tool_use_id=_str(data, "parent_tool_use_id"),
    )


def _str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _int(data: dict[str, Any], key: str) -> int:
    # JSON numbers may arrive as floats; counters are truncated.
    value = data.get(key)
    return int(value) if _is_number(value) and math.isfinite(value) else 0
