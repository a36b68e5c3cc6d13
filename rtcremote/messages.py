"""JSON signaling messages exchanged with the remote peer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# Names used for an ICE candidate JSON object.
CANDIDATE_SDP_MID_NAME = "sdpMid"
CANDIDATE_SDP_MLINE_INDEX_NAME = "sdpMLineIndex"
CANDIDATE_SDP_NAME = "candidate"

# Names used for a session description JSON object.
SESSION_DESCRIPTION_TYPE_NAME = "type"
SESSION_DESCRIPTION_SDP_NAME = "sdp"

LOOPBACK_OFFER_TYPE = "offer-loopback"

_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1


class SignalingError(ValueError):
    """A peer message could not be understood."""


class SdpType(str, Enum):
    OFFER = "offer"
    PRANSWER = "pranswer"
    ANSWER = "answer"


def _to_json(obj: dict[str, Any]) -> str:
    return json.dumps(obj, indent=4, sort_keys=True, ensure_ascii=False) + "\n"


@dataclass(frozen=True)
class IceCandidate:
    sdp_mid: str
    sdp_mline_index: int
    candidate: str

    def to_json(self) -> str:
        """Encode the candidate as the JSON text sent to the peer."""
        return _to_json({
            CANDIDATE_SDP_MID_NAME: self.sdp_mid,
            CANDIDATE_SDP_MLINE_INDEX_NAME: self.sdp_mline_index,
            CANDIDATE_SDP_NAME: self.candidate,
        })


@dataclass(frozen=True)
class SessionDescription:
    type: SdpType
    sdp: str

    def to_json(self) -> str:
        """Encode the description as the JSON text sent to the peer."""
        return _to_json({
            SESSION_DESCRIPTION_TYPE_NAME: SdpType(self.type).value,
            SESSION_DESCRIPTION_SDP_NAME: self.sdp,
        })


@dataclass(frozen=True)
class LoopbackOffer:
    """A request to restart the call as a local loopback without DTLS."""


PeerMessage = Union[IceCandidate, SessionDescription, LoopbackOffer]


def _string_field(obj: dict[str, Any], name: str) -> str:
    value = obj.get(name)
    return value if isinstance(value, str) else ""


def _int_field(obj: dict[str, Any], name: str, default: int) -> int:
    value = obj.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    # A number that is not a whole 32-bit integer reads as zero.
    if value != value or value in (float("inf"), float("-inf")):
        return 0
    if int(value) != value or not _INT32_MIN <= value <= _INT32_MAX:
        return 0
    return int(value)


def parse_peer_message(message: str | bytes) -> PeerMessage:
    """Decode a signaling message received from the peer.

    Raises SignalingError when the text is not JSON, names an unknown SDP
    type, or lacks the fields of a description or a candidate.
    """
    try:
        document = json.loads(message)
    except (ValueError, TypeError) as exc:
        raise SignalingError(f"Received unknown message. {message!r}") from exc

    obj = document if isinstance(document, dict) else {}
    type_str = _string_field(obj, SESSION_DESCRIPTION_TYPE_NAME)

    if type_str:
        if type_str == LOOPBACK_OFFER_TYPE:
            return LoopbackOffer()
        try:
            sdp_type = SdpType(type_str)
        except ValueError:
            raise SignalingError(f"Unknown SDP type: {type_str}") from None
        sdp = _string_field(obj, SESSION_DESCRIPTION_SDP_NAME)
        if not sdp:
            raise SignalingError("Can't parse received session description message.")
        return SessionDescription(sdp_type, sdp)

    sdp_mid = _string_field(obj, CANDIDATE_SDP_MID_NAME)
    sdp_mline_index = _int_field(obj, CANDIDATE_SDP_MLINE_INDEX_NAME, -1)
    sdp = _string_field(obj, CANDIDATE_SDP_NAME)
    if not sdp_mid or not sdp or sdp_mline_index == -1:
        raise SignalingError("Can't parse received message.")
    return IceCandidate(sdp_mid, sdp_mline_index, sdp)