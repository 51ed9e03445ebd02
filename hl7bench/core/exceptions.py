"""
Centralised exception definitions for the HL7 test bench.
All custom exceptions should inherit from Hl7BenchError.

Per-message transport failures are never raised; they are captured in a
TransportResult. Only problems the caller must fix before any I/O happens
surface as exceptions.
"""

class Hl7BenchError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(Hl7BenchError):
    """Raised when a connection configuration or a batch is unusable."""

class DispatchError(Hl7BenchError):
    """Generic failure while coordinating a dispatch."""

class DispatchInProgressError(DispatchError):
    """Raised when a dispatch is started while another one is running."""

class TlsSetupError(ConfigurationError):
    """Raised when a TLS context cannot be built from the configured identity."""
