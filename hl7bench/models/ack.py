"""
Acknowledgment classification.

Responses are classified from their MSA segment alone. Both ``MSA|`` and
``MSA^`` are recognised so that receivers with slightly odd encodings are
still classified the same way.
"""

from __future__ import annotations
import re
from enum import Enum
from typing import Optional

from .message_unit import normalize_line_endings, SEGMENT_TERMINATOR


class AckStatus(Enum):
    """Status classification for transport results."""
    ACK_ACCEPT       = ("ACK (AA)", True)
    ACK_ERROR        = ("ACK (AE)", False)
    ACK_REJECT       = ("ACK (AR)", False)
    TIMEOUT          = ("Timeout", False)
    CONNECTION_ERROR = ("Connection Error", False)
    UNKNOWN_RESPONSE = ("Unknown Response", False)
    GENERIC_SUCCESS  = ("Success", True)

    def __init__(self, display_name: str, successful: bool):
        self.display_name = display_name
        self.successful = successful

    @property
    def is_successful(self) -> bool:
        return self.successful

    @property
    def is_transport_failure(self) -> bool:
        return self in (AckStatus.TIMEOUT, AckStatus.CONNECTION_ERROR)

    def __str__(self) -> str:
        return self.display_name


class AckClassifier:
    """Maps a raw response payload to an :class:`AckStatus`."""

    ACK_TAG = "MSA"
    _SEPARATORS = re.compile(r"[|^]")

    _CODES = {
        "AA": AckStatus.ACK_ACCEPT,
        "CA": AckStatus.ACK_ACCEPT,
        "AE": AckStatus.ACK_ERROR,
        "CE": AckStatus.ACK_ERROR,
        "AR": AckStatus.ACK_REJECT,
        "CR": AckStatus.ACK_REJECT,
    }

    @classmethod
    def _ack_segment(cls, raw_response: Optional[str]) -> Optional[str]:
        if not raw_response:
            return None
        for segment in normalize_line_endings(raw_response).split(SEGMENT_TERMINATOR):
            if segment.startswith(cls.ACK_TAG + "|") or segment.startswith(cls.ACK_TAG + "^"):
                return segment
        return None

    @classmethod
    def has_ack_segment(cls, raw_response: Optional[str]) -> bool:
        return cls._ack_segment(raw_response) is not None

    @classmethod
    def find_ack_code(cls, raw_response: Optional[str]) -> Optional[str]:
        """Raw MSA-1 value, or None when there is no MSA segment."""
        segment = cls._ack_segment(raw_response)
        if segment is None:
            return None
        fields = cls._SEPARATORS.split(segment)
        return fields[1] if len(fields) > 1 else ""

    @classmethod
    def classify(cls, raw_response: Optional[str]) -> AckStatus:
        code = cls.find_ack_code(raw_response)
        if code is None:
            return AckStatus.UNKNOWN_RESPONSE
        return cls._CODES.get(code.strip().upper(), AckStatus.UNKNOWN_RESPONSE)


classify = AckClassifier.classify
