"""macOS keychain trust settings."""
import logging

from brewhttpd import errors
from brewhttpd._internal import constants
from brewhttpd._internal import sudo

logger = logging.getLogger(__name__)


def add_trusted_cert(cert_path: str, keychain: str = constants.SYSTEM_KEYCHAIN) -> None:
    """Trust cert_path as a root for every user of the Mac.

    :param str cert_path: certificate in PEM format
    :param str keychain: keychain receiving the certificate

    :raises .errors.KeychainError: if ``security`` refuses the certificate

    """
    cmd = ["security", "add-trusted-cert", "-d", "-r", "trustRoot",
           "-k", keychain, cert_path]
    try:
        sudo.run(cmd)
    except errors.SubprocessError:
        raise errors.KeychainError("Failed to trust cert")
    logger.debug("Trusted %s in %s", cert_path, keychain)
