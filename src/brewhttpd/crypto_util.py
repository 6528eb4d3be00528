"""Key and certificate handling for the local HTTPS virtual host.

Everything is done in-process with `cryptography`; the ``openssl`` formula
is only installed for the user.

"""
import datetime
import ipaddress
import logging
import os
from typing import List
from typing import Optional
from typing import Sequence

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.hazmat.primitives.serialization import NoEncryption
from cryptography.hazmat.primitives.serialization import PrivateFormat
from cryptography.x509.oid import NameOID

from brewhttpd import errors
from brewhttpd import util

logger = logging.getLogger(__name__)


def make_key(bits: int = 2048) -> bytes:
    """New unencrypted RSA private key, PKCS#8 PEM.

    :raises errors.Error: if bits is below 2048

    """
    if bits < 2048:
        raise errors.Error("RSA keys must have at least 2048 bits, not {0}".format(bits))
    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    return key.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=NoEncryption()
    )


def dev_cert_names(server_name: str) -> List[str]:
    """DNS names of the development certificate for server_name.

    ``localhost`` also covers every ``*.localhost`` subdomain.

    """
    return [server_name, "*." + server_name]


def make_self_signed_cert(key_pem: bytes, common_name: str,
                          dns_names: Optional[Sequence[str]] = None,
                          ips: Optional[Sequence[str]] = None,
                          days: int = 365,
                          not_before: Optional[datetime.datetime] = None) -> bytes:
    """Generate a self-signed leaf certificate.

    The certificate carries ``CN=<common_name>`` as subject and issuer, a
    ``subjectAltName`` listing every DNS name and IP address, and a critical
    ``basicConstraints`` of ``CA:FALSE``.

    :param bytes key_pem: Private key, in PEM PKCS#8 format.
    :param str common_name: subject CN
    :param dns_names: ``DNSName`` entries of the subjectAltName
    :param ips: ``IPAddress`` entries of the subjectAltName, as strings
    :param int days: validity period
    :param not_before: start of the validity period, now if ``None``

    :returns: certificate in PEM format
    :rtype: bytes

    """
    key = serialization.load_pem_private_key(key_pem, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise errors.Error("Only RSA keys are supported.")
    if not_before is None:
        not_before = datetime.datetime.now(datetime.timezone.utc)

    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    sanlist: List[x509.GeneralName] = []
    for dns_name in dns_names or []:
        sanlist.append(x509.DNSName(dns_name))
    for ip in ips or []:
        sanlist.append(x509.IPAddress(ipaddress.ip_address(ip)))

    builder = x509.CertificateBuilder()
    builder = builder.serial_number(x509.random_serial_number())
    builder = builder.subject_name(name)
    builder = builder.issuer_name(name)
    builder = builder.public_key(key.public_key())
    builder = builder.not_valid_before(not_before)
    builder = builder.not_valid_after(not_before + datetime.timedelta(days=days))
    if sanlist:
        builder = builder.add_extension(x509.SubjectAlternativeName(sanlist), critical=False)
    builder = builder.add_extension(x509.BasicConstraints(ca=False, path_length=None),
                                    critical=True)

    cert = builder.sign(key, hashes.SHA256())
    return cert.public_bytes(Encoding.PEM)


def write_cert_and_key(cert_path: str, key_path: str, cert_pem: bytes,
                       key_pem: bytes) -> None:
    """Save a certificate (mode 0644) and its private key (mode 0600).

    Existing files are replaced.

    """
    for path in (cert_path, key_path):
        util.make_or_verify_dir(os.path.dirname(path), 0o755)
        util.safely_remove(path)
    with util.safe_open(key_path, mode="wb", chmod=0o600) as key_f:
        key_f.write(key_pem)
    with util.safe_open(cert_path, mode="wb", chmod=0o644) as cert_f:
        cert_f.write(cert_pem)
    # the umask may have masked bits out of the requested modes
    os.chmod(key_path, 0o600)
    os.chmod(cert_path, 0o644)
    logger.debug("Saved certificate to %s and key to %s", cert_path, key_path)


def _load_cert(cert_path: str) -> x509.Certificate:
    with open(cert_path, "rb") as f:
        return x509.load_pem_x509_certificate(f.read())


def verify_cert_matches_priv_key(cert_path: str, key_path: str) -> None:
    """Check that the certificate was issued for the private key.

    :raises errors.Error: if either file cannot be read or parsed, or
        their public keys differ

    """
    try:
        cert = _load_cert(cert_path)
        with open(key_path, "rb") as key_file:
            key = serialization.load_pem_private_key(key_file.read(), password=None)
    except (OSError, ValueError) as error:
        msg = "Cannot read {0} and {1}: {2}".format(cert_path, key_path, error)
        logger.debug(msg, exc_info=True)
        raise errors.Error(msg)

    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    if (cert.public_key().public_bytes(Encoding.PEM, spki) !=
            key.public_key().public_bytes(Encoding.PEM, spki)):
        raise errors.Error("{0} was not issued for the key in {1}.".format(
            cert_path, key_path))


def sha256_fingerprint(cert_path: str) -> str:
    """SHA-256 fingerprint of the certificate at cert_path, as uppercase hex."""
    return _load_cert(cert_path).fingerprint(hashes.SHA256()).hex().upper()


def cert_expiry(cert_path: str) -> datetime.datetime:
    """Aware UTC datetime after which the certificate at cert_path is invalid."""
    return _load_cert(cert_path).not_valid_after_utc
