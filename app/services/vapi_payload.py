"""Normalisation of inbound voice-platform webhook payloads.

The platform is loose about where it puts things: the call id may live under
``message.call.id`` or ``message.callId`` (or at the top level for some server
events), tool calls arrive as ``toolCalls`` or ``toolCallList``, and function
arguments come either as a JSON string or as an already-decoded object. All of
that is resolved here, once, into a :class:`WebhookEvent`.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

TOOL_CALLS_EVENT = "tool-calls"

DEFAULT_USER_ID = "no-id-found"
DEFAULT_ROLE = "Technical Interview"
DEFAULT_TECH_STACK = "General"
DEFAULT_LEVEL = "Standard"
DEFAULT_FEEDBACK = "No feedback provided."


class InvalidToolArguments(ValueError):
    """Tool-call arguments could not be decoded into an object."""


@dataclass
class ToolCall:
    id: Optional[str]
    name: str
    arguments: Any = None  # raw; see decode_arguments


@dataclass
class WebhookEvent:
    type: Optional[str]
    call_id: Optional[str]
    tool_calls: list[ToolCall] = field(default_factory=list)

    def find_tool_call(self, name: str) -> Optional[ToolCall]:
        return next((tc for tc in self.tool_calls if tc.name == name), None)


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text_or_default(value: Any, default: str) -> str:
    return _text_or_none(value) or default


class InterviewEvaluation(BaseModel):
    """Evaluation fields with every gap filled by a default.

    Construction never fails: anything missing or unusable falls back to its
    default so a partially populated payload still produces a record.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(DEFAULT_USER_ID, alias="userId")
    role: str = DEFAULT_ROLE
    tech_stack: str = Field(DEFAULT_TECH_STACK, alias="techStack")
    level: str = DEFAULT_LEVEL
    score: int = 0
    feedback: str = DEFAULT_FEEDBACK

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, v):
        return _text_or_default(v, DEFAULT_USER_ID)

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, v):
        return _text_or_default(v, DEFAULT_ROLE)

    @field_validator("tech_stack", mode="before")
    @classmethod
    def _tech_stack(cls, v):
        if isinstance(v, (list, tuple)):
            v = ", ".join(str(item).strip() for item in v if str(item).strip())
        return _text_or_default(v, DEFAULT_TECH_STACK)

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v):
        return _text_or_default(v, DEFAULT_LEVEL)

    @field_validator("feedback", mode="before")
    @classmethod
    def _feedback(cls, v):
        return _text_or_default(v, DEFAULT_FEEDBACK)

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v):
        if isinstance(v, bool):
            return 0
        try:
            number = float(v)
        except (TypeError, ValueError):
            return 0
        if math.isnan(number) or math.isinf(number):
            return 0
        return int(round(min(max(number, 0.0), 100.0)))

    @classmethod
    def from_arguments(cls, arguments: dict) -> "InterviewEvaluation":
        known = {
            "userId": arguments.get("userId", arguments.get("user_id")),
            "role": arguments.get("role"),
            "techStack": arguments.get("techStack", arguments.get("tech_stack")),
            "level": arguments.get("level"),
            "score": arguments.get("score"),
            "feedback": arguments.get("feedback"),
        }
        return cls(**known)


def decode_arguments(raw: Any) -> dict:
    """Accept function arguments as a JSON string or as a mapping."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidToolArguments(f"Tool arguments are not valid JSON: {e.msg}") from e
        if not isinstance(decoded, dict):
            raise InvalidToolArguments("Tool arguments must decode to an object")
        return decoded
    raise InvalidToolArguments(f"Unsupported tool arguments type: {type(raw).__name__}")


def extract_call_id(body: dict) -> Optional[str]:
    message = body.get("message") if isinstance(body.get("message"), dict) else {}
    message_call = message.get("call") if isinstance(message.get("call"), dict) else {}
    top_call = body.get("call") if isinstance(body.get("call"), dict) else {}

    candidates = (
        message_call.get("id"),
        message.get("callId"),
        top_call.get("id"),
        body.get("callId"),
    )
    for candidate in candidates:
        call_id = _text_or_none(candidate)
        if call_id:
            return call_id
    return None


def _parse_tool_call(entry: Any) -> Optional[ToolCall]:
    if not isinstance(entry, dict):
        return None
    function = entry.get("function")
    if not isinstance(function, dict):
        return None
    name = _text_or_none(function.get("name"))
    if not name:
        return None
    return ToolCall(
        id=_text_or_none(entry.get("id")),
        name=name,
        arguments=function.get("arguments"),
    )


def parse_webhook_event(body: Any) -> WebhookEvent:
    """Normalise a raw webhook body.

    Tool-call arguments are left undecoded here; call :func:`decode_arguments`
    on the one tool call that will be acted on, so a malformed argument blob on
    an unrelated tool does not fail the whole request.
    """
    if not isinstance(body, dict):
        return WebhookEvent(type=None, call_id=None)

    message = body.get("message") if isinstance(body.get("message"), dict) else {}
    raw_calls = message.get("toolCalls")
    if not isinstance(raw_calls, list):
        raw_calls = message.get("toolCallList")
    if not isinstance(raw_calls, list):
        raw_calls = []

    tool_calls = [tc for tc in (_parse_tool_call(entry) for entry in raw_calls) if tc]
    return WebhookEvent(
        type=_text_or_none(message.get("type")),
        call_id=extract_call_id(body),
        tool_calls=tool_calls,
    )
