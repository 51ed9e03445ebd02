"""TLS context construction shared by the MLLP and HTTP channels."""

import logging
import ssl
from typing import Optional

from hl7bench.core.exceptions import TlsSetupError
from hl7bench.models import TlsIdentity

logger = logging.getLogger(__name__)


def build_ssl_context(identity: Optional[TlsIdentity] = None) -> ssl.SSLContext:
    """Client context, with the keystore as client identity and extra trust.

    Without an identity (or when its keystore file does not exist) the
    context is anonymous, trusts the system defaults and checks the
    server's hostname. With an identity the certificate chain is still
    verified but the hostname is not, so a receiver addressed by IP with
    a certificate issued for a DNS name is accepted.
    """
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if identity is None or not identity.keystore_path:
        return context
    if not identity.exists:
        logger.warning(f"Keystore {identity.keystore_path} not found, using anonymous TLS")
        return context

    try:
        # an empty password makes an encrypted key fail instead of prompting on the terminal
        context.load_cert_chain(identity.keystore_path, password=identity.passphrase or "")
    except (ssl.SSLError, OSError, ValueError) as e:
        raise TlsSetupError(f"Cannot load client identity from {identity.keystore_path}: {e}") from e

    try:
        context.load_verify_locations(cafile=identity.keystore_path)
    except ssl.SSLError as e:
        # a bundle with only a key and leaf certificate has nothing to trust
        logger.debug(f"No trust anchors in {identity.keystore_path}: {e}")

    context.check_hostname = False
    return context
