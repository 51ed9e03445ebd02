"""HL7 Test Bench - Main Package"""

__version__ = '1.0.0'
__description__ = 'Send HL7 v2 messages over MLLP or HTTP and inspect the acknowledgments'

# Core patterns - most fundamental
from .core import (
    TransportObserver,
    CallbackObserver,
    TransportSubject,
    DispatchOutcome,
    DispatchState,
    ConfigurationError,
    DispatchInProgressError,
)

# Models - value objects
from .models import (
    MessageUnit,
    TransportMode,
    TlsIdentity,
    TransportConfig,
    AckStatus,
    AckClassifier,
    TransportResult,
)

# Parsing
from .parsing import BatchSplitter

# Transports
from .transports import MllpTransport, HttpTransport, TransportRouter

# Orchestration
from .orchestration import DispatchCoordinator

# Services
from .services import ServerProfile, ServerProfileStore

__all__ = [
    # Core
    'TransportObserver',
    'CallbackObserver',
    'TransportSubject',
    'DispatchOutcome',
    'DispatchState',
    'ConfigurationError',
    'DispatchInProgressError',

    # Models
    'MessageUnit',
    'TransportMode',
    'TlsIdentity',
    'TransportConfig',
    'AckStatus',
    'AckClassifier',
    'TransportResult',

    # Parsing
    'BatchSplitter',

    # Transports
    'MllpTransport',
    'HttpTransport',
    'TransportRouter',

    # Orchestration
    'DispatchCoordinator',

    # Services
    'ServerProfile',
    'ServerProfileStore',
]
