from __future__ import annotations
from dataclasses import dataclass, field
from typing import List


HEADER_TAG = "MSH"
FIELD_SEPARATOR = "|"
COMPONENT_SEPARATOR = "^"
SEGMENT_TERMINATOR = "\r"
UNKNOWN_CONTROL_ID = "UNKNOWN"


def normalize_line_endings(content: str) -> str:
    """Convert CRLF and LF to the HL7 segment terminator (CR)."""
    if content is None:
        return ""
    return content.replace("\r\n", SEGMENT_TERMINATOR).replace("\n", SEGMENT_TERMINATOR)


def header_fields(content: str) -> List[str]:
    """Fields of the first MSH segment, trailing empty fields preserved.

    Index 0 is the segment tag, so index *n* is MSH-*n* in the
    convention where MSH-1 is the field separator itself.
    """
    for segment in normalize_line_endings(content).split(SEGMENT_TERMINATOR):
        if segment[:3] == HEADER_TAG:
            # str.split keeps trailing empty strings
            return segment.split(FIELD_SEPARATOR)
    return []


def field_at(fields: List[str], index: int) -> str:
    return fields[index] if 0 <= index < len(fields) else ""


def extract_control_id(content: str) -> str:
    """Control id of a raw message, or ``UNKNOWN`` if it has none."""
    try:
        return field_at(header_fields(content), 9) or UNKNOWN_CONTROL_ID
    except Exception:
        return UNKNOWN_CONTROL_ID


###############################################################################
# MESSAGE UNIT -----------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class MessageUnit:
    """One HL7 message plus the MSH metadata needed to identify it.

    Equality and hashing only look at ``raw_content``.
    """
    raw_content: str
    control_id: str          = field(default="", compare=False)
    message_type: str        = field(default="", compare=False)
    trigger_event: str       = field(default="", compare=False)
    sending_application: str = field(default="", compare=False)
    sending_facility: str    = field(default="", compare=False)

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_raw(cls, content: str) -> "MessageUnit":
        raw = normalize_line_endings(content)
        try:
            fields = header_fields(raw)
        except Exception:
            fields = []
        type_parts = field_at(fields, 8).split(COMPONENT_SEPARATOR)
        return cls(
            raw_content         = raw,
            control_id          = field_at(fields, 9),
            message_type        = type_parts[0],
            trigger_event       = type_parts[1] if len(type_parts) > 1 else "",
            sending_application = field_at(fields, 2),
            sending_facility    = field_at(fields, 3),
        )

    # ---------- display helpers ------------------------------------------- #
    @property
    def full_message_type(self) -> str:
        if not self.trigger_event:
            return self.message_type
        return f"{self.message_type}{COMPONENT_SEPARATOR}{self.trigger_event}"

    @property
    def display_summary(self) -> str:
        return f"{self.full_message_type} - {self.control_id}"

    @property
    def segments(self) -> List[str]:
        return [s for s in self.raw_content.split(SEGMENT_TERMINATOR) if s]

    def __str__(self) -> str:
        return self.display_summary
