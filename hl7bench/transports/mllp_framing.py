"""
MLLP framing.

A frame is ``<VT> payload <FS><CR>`` with VT=0x0B, FS=0x1C, CR=0x0D and no
length prefix. Deframing is a small state machine fed with whatever chunks
the socket returns:

    state           byte    action                     next
    AWAITING_START  VT      clear buffer               READING
    AWAITING_START  other   discard                    AWAITING_START
    READING         VT      clear buffer (resync)      READING
    READING         FS      -                          PENDING_END
    READING         other   append                     READING
    PENDING_END     CR      -                          COMPLETE
    PENDING_END     FS      append the held FS         PENDING_END
    PENDING_END     VT      clear buffer (resync)      READING
    PENDING_END     other   append FS, append byte     READING

Bytes arriving after COMPLETE are ignored.
"""

from enum import Enum, auto
from typing import Callable, Dict

START_BYTE = 0x0B
END_BYTE = 0x1C
CARRIAGE_RETURN = 0x0D

START_BLOCK = bytes([START_BYTE])
END_BLOCK = bytes([END_BYTE, CARRIAGE_RETURN])


def frame_message(message: str, encoding: str = "utf-8") -> bytes:
    """Wrap a message in MLLP framing characters."""
    return START_BLOCK + message.encode(encoding) + END_BLOCK


class FrameState(Enum):
    AWAITING_START = auto()
    READING        = auto()
    PENDING_END    = auto()
    COMPLETE       = auto()


class MllpFrameDecoder:
    """Incremental decoder for a single MLLP frame."""

    def __init__(self):
        self.state = FrameState.AWAITING_START
        self._buffer = bytearray()
        self._transitions: Dict[FrameState, Callable[[int], FrameState]] = {
            FrameState.AWAITING_START: self._awaiting_start,
            FrameState.READING:        self._reading,
            FrameState.PENDING_END:    self._pending_end,
        }

    @property
    def complete(self) -> bool:
        return self.state is FrameState.COMPLETE

    @property
    def payload(self) -> bytes:
        return bytes(self._buffer)

    def feed(self, data: bytes) -> bool:
        """Consume a chunk; returns True once the frame is complete."""
        pos, size = 0, len(data)
        while pos < size and not self.complete:
            # plain data is copied in runs, only control bytes go through step()
            if self.state is FrameState.AWAITING_START:
                nxt = data.find(START_BLOCK, pos)
                if nxt == -1:
                    return False
                pos = nxt
            elif self.state is FrameState.READING:
                nxt = _next_control_byte(data, pos)
                if nxt == -1:
                    self._buffer += data[pos:]
                    return False
                self._buffer += data[pos:nxt]
                pos = nxt
            self.step(data[pos])
            pos += 1
        return self.complete

    def step(self, byte: int) -> FrameState:
        """Apply one byte to the state machine."""
        if not self.complete:
            self.state = self._transitions[self.state](byte)
        return self.state

    def _awaiting_start(self, byte: int) -> FrameState:
        if byte == START_BYTE:
            self._buffer.clear()
            return FrameState.READING
        return FrameState.AWAITING_START

    def _reading(self, byte: int) -> FrameState:
        if byte == START_BYTE:
            self._buffer.clear()
            return FrameState.READING
        if byte == END_BYTE:
            return FrameState.PENDING_END
        self._buffer.append(byte)
        return FrameState.READING

    def _pending_end(self, byte: int) -> FrameState:
        if byte == CARRIAGE_RETURN:
            return FrameState.COMPLETE
        if byte == END_BYTE:
            self._buffer.append(END_BYTE)
            return FrameState.PENDING_END
        if byte == START_BYTE:
            self._buffer.clear()
            return FrameState.READING
        self._buffer.append(END_BYTE)
        self._buffer.append(byte)
        return FrameState.READING


def _next_control_byte(data: bytes, pos: int) -> int:
    """Index of the next VT or FS at or after ``pos``, or -1."""
    hits = [i for i in (data.find(START_BLOCK, pos), data.find(bytes([END_BYTE]), pos)) if i != -1]
    return min(hits) if hits else -1
