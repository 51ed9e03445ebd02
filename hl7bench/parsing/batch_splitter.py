"""
Batch splitting for HL7 v2 text.

A batch is any text holding one or more messages back to back. Every
``MSH|`` at the start of a line begins a new message. A ``MSH|`` that
happens to start a line inside a field value is also treated as a
boundary; there is no way to tell the two apart without a full grammar.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from hl7bench.models.message_unit import (
    MessageUnit,
    HEADER_TAG,
    FIELD_SEPARATOR,
    SEGMENT_TERMINATOR,
    normalize_line_endings,
)

logger = logging.getLogger(__name__)


class BatchSplitter:
    """Splits raw text into :class:`MessageUnit` objects."""

    HEADER_MARKER = HEADER_TAG + FIELD_SEPARATOR
    _HEADER_PATTERN = re.compile(
        r"(?:^|(?<=" + re.escape(SEGMENT_TERMINATOR) + r"))" + re.escape(HEADER_MARKER)
    )

    @staticmethod
    def normalize(content: Optional[str]) -> str:
        return normalize_line_endings(content or "").strip()

    @classmethod
    def split(cls, content: Optional[str]) -> List[MessageUnit]:
        """Split text into messages; returns an empty list if there is no header."""
        if not content or not content.strip():
            return []

        normalized = cls.normalize(content)
        positions = [m.start() for m in cls._HEADER_PATTERN.finditer(normalized)]
        if not positions:
            logger.debug(f"No MSH segment found in {len(normalized)} characters of input")
            return []

        units = []
        bounds = positions[1:] + [len(normalized)]
        for start, end in zip(positions, bounds):
            extent = normalized[start:end].strip()
            if extent:
                units.append(MessageUnit.from_raw(extent))

        logger.debug(f"Split input into {len(units)} message(s)")
        return units

    @classmethod
    def split_single(cls, content: Optional[str]) -> Optional[MessageUnit]:
        """Treat the whole text as one message, or None if it has no header."""
        if not content or not content.strip():
            return None
        normalized = cls.normalize(content)
        if cls.HEADER_MARKER not in normalized:
            return None
        return MessageUnit.from_raw(normalized)

    @classmethod
    def is_valid_hl7(cls, content: Optional[str]) -> bool:
        if not content or not content.strip():
            return False
        return cls.HEADER_MARKER in cls.normalize(content)

    @classmethod
    def read_file(cls, path: Union[str, Path], encoding: str = "utf-8") -> List[MessageUnit]:
        """Read a file and split its contents. I/O errors propagate."""
        text = Path(path).read_text(encoding=encoding)
        units = cls.split(text)
        logger.info(f"Loaded {len(units)} message(s) from {path}")
        return units


split = BatchSplitter.split
split_single = BatchSplitter.split_single
