"""Control messages sent over the data channel to drive the remote side."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, TypeVar

from .bufferutil import ByteReader, pack_float, pack_u32


class ControlMsgType(IntEnum):
    NULL = -1
    INJECT_MOUSE = 0


class MouseAction(IntEnum):
    """Mouse event kinds, numbered as the widget toolkit's event types."""

    MOUSE_BUTTON_PRESS = 2
    MOUSE_BUTTON_RELEASE = 3
    MOUSE_BUTTON_DBL_CLICK = 4
    MOUSE_MOVE = 5


class MouseButton(IntEnum):
    NO_BUTTON = 0
    LEFT = 1
    RIGHT = 2
    MIDDLE = 4


# One type byte followed by action, button, x and y (4 bytes each).
INJECT_MOUSE_SIZE = 1 + 16

_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: type[_E], value: int) -> _E | int:
    """Return the enum member for ``value``, or the plain int if unknown."""
    try:
        return enum_cls(value)
    except ValueError:
        return int(value)


@dataclass(frozen=True)
class ControlMsg:
    """A single control message; ``x`` and ``y`` are relative (0..1) positions."""

    type: ControlMsgType = ControlMsgType.NULL
    action: MouseAction | int = 0
    button: MouseButton | int = 0
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def inject_mouse(cls, action: int, button: int, x: float, y: float) -> "ControlMsg":
        """Build a mouse-injection message."""
        return cls(
            ControlMsgType.INJECT_MOUSE,
            _coerce(MouseAction, action),
            _coerce(MouseButton, button),
            float(x),
            float(y),
        )

    def serialize(self) -> bytes:
        """Encode the message into its wire form."""
        out = bytearray([int(self.type) & 0xFF])
        if self.type is ControlMsgType.INJECT_MOUSE:
            out += pack_u32(int(self.action))
            out += pack_u32(int(self.button))
            out += pack_float(self.x)
            out += pack_float(self.y)
        return bytes(out)


def take_control_msg(buffer: bytearray) -> ControlMsg | None:
    """Decode one message from the front of ``buffer`` and remove its bytes.

    Returns None, leaving ``buffer`` untouched, when the buffer is empty,
    holds only part of a message, or starts with an unknown type byte.
    """
    if not buffer:
        return None
    kind = buffer[0] - 256 if buffer[0] >= 128 else buffer[0]
    if kind != ControlMsgType.INJECT_MOUSE or len(buffer) < INJECT_MOUSE_SIZE:
        return None
    reader = ByteReader(buffer[1:INJECT_MOUSE_SIZE])
    action = reader.read_u32()
    button = reader.read_u32()
    x = reader.read_float()
    y = reader.read_float()
    del buffer[:INJECT_MOUSE_SIZE]
    return ControlMsg(
        ControlMsgType.INJECT_MOUSE,
        _coerce(MouseAction, action),
        _coerce(MouseButton, button),
        x,
        y,
    )


def iter_control_msgs(buffer: bytearray) -> Iterator[ControlMsg]:
    """Yield every complete message at the front of ``buffer``, consuming it."""
    while (msg := take_control_msg(buffer)) is not None:
        yield msg