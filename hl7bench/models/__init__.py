"""Data models and value objects."""

from .message_unit import (
    MessageUnit,
    normalize_line_endings,
    extract_control_id,
)

from .transport_config import (
    TransportMode,
    TlsIdentity,
    TransportConfig,
)

from .ack import AckStatus, AckClassifier, classify

from .transport_result import TransportResult

__all__ = [
    # Messages
    'MessageUnit',
    'normalize_line_endings',
    'extract_control_id',

    # Connection
    'TransportMode',
    'TlsIdentity',
    'TransportConfig',

    # Responses
    'AckStatus',
    'AckClassifier',
    'classify',
    'TransportResult',
]
