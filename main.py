#!/usr/bin/env python3
"""Send a file of HL7 v2 messages over MLLP or HTTP and log each acknowledgment."""
import argparse
import logging
import sys

from config.app_config import settings
from config.logging_config import configure
from hl7bench import (
    BatchSplitter,
    ConfigurationError,
    DispatchCoordinator,
    DispatchOutcome,
    ServerProfileStore,
    TlsIdentity,
    TransportConfig,
    TransportMode,
    TransportObserver,
    TransportRouter,
)

log = logging.getLogger("hl7bench")


class LoggingObserver(TransportObserver):
    """Writes dispatch events to the log and remembers failures."""

    def __init__(self):
        self.failures = 0
        self.outcome = None

    def on_transport_started(self, control_id):
        log.info(f"→ {control_id}")

    def on_transport_completed(self, result):
        level = logging.INFO if result.is_successful else logging.WARNING
        log.log(level, f"← {result.control_id} {result.status} ({result.round_trip_ms} ms)")
        if result.display_response:
            log.debug(result.display_response.replace("\r", "\n"))
        if not result.is_successful:
            self.failures += 1

    def on_dispatch_finished(self, outcome, message):
        self.outcome = outcome
        log.info(message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("file", help="File with one or more HL7 messages")
    parser.add_argument("--profile", help="Use a saved server profile by name")
    parser.add_argument("--mode", choices=[m.value for m in TransportMode], default=TransportMode.MLLP.value)
    parser.add_argument("--host", default=settings.HL7_HOST)
    parser.add_argument("--port", type=int, default=settings.HL7_PORT)
    parser.add_argument("--url", default=settings.HL7_URL)
    parser.add_argument("--tls", action="store_true", help="Wrap the connection in TLS")
    parser.add_argument("--keystore", help="PEM bundle with client certificate and key")
    parser.add_argument("--passphrase", help="Passphrase for the keystore's private key")
    parser.add_argument("--timeout-ms", type=int, default=settings.HL7_TIMEOUT_MS)
    parser.add_argument("--content-type", default=settings.HL7_CONTENT_TYPE)
    parser.add_argument("--pacing-ms", type=int, default=settings.HL7_PACING_MS)
    parser.add_argument("--log-level", default=None)
    return parser


def build_config(args) -> TransportConfig:
    if args.profile:
        profile = ServerProfileStore(settings.HL7_PROFILE_PATH).get(args.profile)
        if profile is None:
            raise ConfigurationError(f"No saved profile named {args.profile!r}")
        config = profile.to_config()
    else:
        config = TransportConfig(
            mode=TransportMode(args.mode),
            host=args.host,
            port=args.port,
            url=args.url,
            use_tls=args.tls,
            timeout_ms=args.timeout_ms,
        )
    if args.keystore:
        config = config.replace(use_tls=True, tls_identity=TlsIdentity(args.keystore, args.passphrase))
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure(args.log_level)

    try:
        units = BatchSplitter.read_file(args.file)
        config = build_config(args)
        router = TransportRouter()
        router.http_transport.content_type = args.content_type
        coordinator = DispatchCoordinator(router, pacing_ms=args.pacing_ms)
        observer = LoggingObserver()
        coordinator.start(units, config, observer=observer)
    except (ConfigurationError, OSError) as e:
        log.error(str(e))
        return 2

    try:
        coordinator.wait()
    except KeyboardInterrupt:
        coordinator.cancel()
        coordinator.wait()

    if observer.outcome is DispatchOutcome.CANCELLED or observer.failures:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
