# social_service/realtime/protocol.py
"""Wire format of the realtime socket.

Every frame is ``{"event": <name>, "data": {...}}``. Inbound frames are
validated against a closed union keyed on the event name; field names are
camelCase on the wire.
"""
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from social_service.domain.errors import ValidationFailure

# outbound event names
ONLINE_USERS = "online_users"
USER_ONLINE = "user_online"
USER_OFFLINE = "user_offline"
RECEIVE_MESSAGE = "receive_message"
MESSAGE_SENT = "message_sent"
MESSAGE_READ = "message_read"
USER_TYPING = "user_typing"
USER_STOP_TYPING = "user_stop_typing"
RECEIVE_GROUP_MESSAGE = "receive_group_message"
GROUP_MESSAGE_SENT = "group_message_sent"
USER_TYPING_GROUP = "user_typing_group"
USER_STOP_TYPING_GROUP = "user_stop_typing_group"
USER_JOINED_GROUP = "user_joined_group"
USER_LEFT_GROUP = "user_left_group"
NEW_NOTIFICATION = "new_notification"
GROUP_BANNED = "group_banned"
GROUP_KICKED = "group_kicked"
ERROR = "error"

CorrelationToken = str | int | None


class InboundEvent(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True
    )


class Join(InboundEvent):
    event: Literal["join"]
    user_id: int


class SendMessage(InboundEvent):
    event: Literal["send_message"]
    receiver_id: int
    content: str | None = None
    message_type: Literal["text", "image", "video", "audio"] = "text"
    media_url: str | None = None
    media_public_id: str | None = None
    temp_id: CorrelationToken = None


class Typing(InboundEvent):
    event: Literal["typing"]
    receiver_id: int


class StopTyping(InboundEvent):
    event: Literal["stop_typing"]
    receiver_id: int


class MarkRead(InboundEvent):
    event: Literal["mark_read"]
    message_id: int


class JoinGroup(InboundEvent):
    event: Literal["join_group"]
    group_id: int


class LeaveGroup(InboundEvent):
    event: Literal["leave_group"]
    group_id: int


class SendGroupMessage(InboundEvent):
    event: Literal["send_group_message"]
    group_id: int
    content: str | None = None
    message_type: Literal["text", "image", "video", "voice", "file", "system"] = "text"
    media_url: str | None = None
    media_public_id: str | None = None
    file_name: str | None = None
    temp_id: CorrelationToken = None


class GroupTyping(InboundEvent):
    event: Literal["group_typing"]
    group_id: int


class GroupStopTyping(InboundEvent):
    event: Literal["group_stop_typing"]
    group_id: int


_INBOUND_MODELS = (
    Join,
    SendMessage,
    Typing,
    StopTyping,
    MarkRead,
    JoinGroup,
    LeaveGroup,
    SendGroupMessage,
    GroupTyping,
    GroupStopTyping,
)

Inbound = Annotated[Union[_INBOUND_MODELS], Field(discriminator="event")]

_inbound_adapter: TypeAdapter[Inbound] = TypeAdapter(Inbound)

INBOUND_EVENTS = frozenset(
    get_args(model.model_fields["event"].annotation)[0] for model in _INBOUND_MODELS
)


class FrameError(ValidationFailure):
    def __init__(self, message: str, event: str | None = None):
        super().__init__(message)
        self.event = event


def parse_frame(raw: Any) -> InboundEvent:
    """Validate one decoded JSON frame into its event model.

    Raises FrameError for anything that is not a known event of the right
    shape; the error carries the event name when one could be read.
    """
    if not isinstance(raw, dict):
        raise FrameError("Frame must be a JSON object")
    event = raw.get("event")
    if not isinstance(event, str):
        raise FrameError("Frame is missing an event name")
    if event not in INBOUND_EVENTS:
        raise FrameError(f"Unknown event: {event}", event)
    data = raw.get("data", {})
    if data is None:
        data = {}
    if event == "join" and isinstance(data, (int, str)):
        # bare id form: {"event": "join", "data": 42}
        data = {"userId": data}
    if not isinstance(data, dict):
        raise FrameError("Event data must be a JSON object", event)
    extra_keys = set(raw) - {"event", "data"}
    if extra_keys:
        raise FrameError(f"Unexpected frame keys: {sorted(extra_keys)}", event)

    try:
        return _inbound_adapter.validate_python({**data, "event": event})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'][1:]) or 'data'}: {err['msg']}"
            for err in e.errors()
        )
        raise FrameError(f"Invalid {event} payload: {problems}", event) from None