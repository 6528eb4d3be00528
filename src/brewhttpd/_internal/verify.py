"""Smoke tests against the running Apache."""
import logging
import warnings

import requests

from brewhttpd import errors
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)


def http_url(server_name: str, port: int) -> str:
    if port == 80:
        return "http://{0}".format(server_name)
    return "http://{0}:{1}".format(server_name, port)


def https_url(server_name: str, port: int) -> str:
    if port == 443:
        return "https://{0}".format(server_name)
    return "https://{0}:{1}".format(server_name, port)


def _answers(url: str, verify: bool = True) -> bool:
    try:
        with warnings.catch_warnings():
            # no InsecureRequestWarning for the unverified HTTPS probe
            warnings.simplefilter("ignore")
            response = requests.get(url, verify=verify,
                                    timeout=constants.REQUEST_TIMEOUT)
    except requests.RequestException as error:
        logger.debug("Request to %s failed: %s", url, error)
        return False
    logger.debug("%s answered with status %d", url, response.status_code)
    return True


def check_http(server_name: str, port: int) -> None:
    """Request the HTTP virtual host.

    Any HTTP response counts as success.

    :raises .errors.VerificationError: if no response is received

    """
    if not _answers(http_url(server_name, port)):
        raise errors.VerificationError("HTTP failed")


def check_https(server_name: str, port: int) -> bool:
    """Request the HTTPS virtual host without verifying its certificate.

    :returns: True if a response was received
    :rtype: bool

    """
    return _answers(https_url(server_name, port), verify=False)
