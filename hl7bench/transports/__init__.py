"""Transport implementations."""

from .base_transport import BaseTransport
from .mllp_framing import (
    FrameState,
    MllpFrameDecoder,
    frame_message,
)
from .mllp_transport import MllpTransport
from .http_transport import HttpTransport, DEFAULT_CONTENT_TYPE
from .tls import build_ssl_context
from .transport_router import TransportRouter

__all__ = [
    # Base classes
    'BaseTransport',

    # Framing
    'FrameState',
    'MllpFrameDecoder',
    'frame_message',

    # Implementations
    'MllpTransport',
    'HttpTransport',
    'DEFAULT_CONTENT_TYPE',
    'build_ssl_context',

    # Router
    'TransportRouter',
]
