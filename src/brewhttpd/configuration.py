"""brewhttpd user-supplied configuration."""
import argparse
import logging
import os
import re
from typing import Any
from typing import List

from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)

_PHP_VERSION_RE = re.compile(r"^\d+\.\d+$")


class NamespaceConfig:
    """Parsed options plus the paths derived from them.

    Every Apache path is dynamically resolved from
    :attr:`~brewhttpd.configuration.NamespaceConfig.brew_prefix`, which is
    ``None`` until Homebrew has been located:

      - `httpd_bin`
      - `httpd_conf`
      - `ssl_conf`
      - `vhosts_conf`
      - `users_conf_dir`
      - `ssl_dir`
      - `apache_log_dir`
      - `php_module`

    Attributes not defined here are read from and written to the wrapped
    namespace.

    :ivar argparse.Namespace namespace: result of `cli.prepare_and_parse_args`

    """

    def __init__(self, namespace: argparse.Namespace) -> None:
        self.namespace: argparse.Namespace
        # __setattr__ would store namespace inside itself
        object.__setattr__(self, 'namespace', namespace)

        self.namespace.config_dir = os.path.abspath(
            os.path.expanduser(self.namespace.config_dir))
        self.namespace.logs_dir = os.path.abspath(
            os.path.expanduser(self.namespace.logs_dir))

        _check_config_sanity(self)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.namespace, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.namespace, name, value)

    @property
    def document_root(self) -> str:
        """Absolute path of the directory served by both virtual hosts."""
        return os.path.abspath(os.path.expanduser(self.namespace.document_root))

    @property
    def ports(self) -> List[int]:
        """Ports Apache listens on, HTTP first."""
        return [self.namespace.http_port, self.namespace.https_port]

    @property
    def httpd_root(self) -> str:
        """Homebrew's ``etc/httpd`` directory."""
        return os.path.join(self._prefix(), "etc", "httpd")

    @property
    def httpd_bin(self) -> str:
        """Path to the Homebrew httpd binary."""
        return os.path.join(self._prefix(), "opt", "httpd", "bin", "httpd")

    @property
    def httpd_conf(self) -> str:
        """Main Apache configuration file."""
        return os.path.join(self.httpd_root, "httpd.conf")

    @property
    def ssl_conf(self) -> str:
        """Stock SSL configuration file."""
        return os.path.join(self.httpd_root, "extra", "httpd-ssl.conf")

    @property
    def vhosts_conf(self) -> str:
        """Virtual hosts configuration file, overwritten on each setup."""
        return os.path.join(self.httpd_root, "extra", "httpd-vhosts.conf")

    @property
    def users_conf_dir(self) -> str:
        """Directory of per-user ``<Directory>`` configurations."""
        return os.path.join(self.httpd_root, "users")

    @property
    def user_conf(self) -> str:
        """Per-user configuration file of the invoking user."""
        return os.path.join(self.users_conf_dir, "%s.conf" % util.current_user())

    @property
    def ssl_dir(self) -> str:
        """Directory of the self-signed certificate and its key."""
        return os.path.join(self.httpd_root, "ssl")

    @property
    def cert_path(self) -> str:
        return os.path.join(self.ssl_dir, constants.CERT_BASENAME + ".crt")

    @property
    def key_path(self) -> str:
        return os.path.join(self.ssl_dir, constants.CERT_BASENAME + ".key")

    @property
    def apache_log_dir(self) -> str:
        """Directory receiving Apache's error_log and access_log."""
        return os.path.join(self._prefix(), "var", "log", "httpd")

    @property
    def php_formula(self) -> str:
        """Homebrew formula of the requested PHP version."""
        return "php@%s" % self.namespace.php_version

    @property
    def php_module(self) -> str:
        """Apache module shipped by the PHP formula."""
        return os.path.join(self._prefix(), "opt", self.php_formula,
                            "lib", "httpd", "modules", "libphp.so")

    @property
    def state_path(self) -> str:
        """File recording the last successful setup."""
        return os.path.join(self.namespace.config_dir, constants.STATE_FILENAME)

    def _prefix(self) -> str:
        prefix = self.namespace.brew_prefix
        if not prefix:
            raise errors.Error("The Homebrew prefix has not been determined yet.")
        return prefix


def _check_config_sanity(config: NamespaceConfig) -> None:
    """Reject option combinations Apache or the certificate cannot use.

    :raises .errors.ConfigurationError: naming the offending option

    """
    for port in config.ports:
        if not 0 < port <= 65535:
            raise errors.ConfigurationError(
                "Port {0} is outside the range 1-65535.".format(port))
    if config.http_port == config.https_port:
        raise errors.ConfigurationError(
            "Trying to run HTTP and HTTPS on the same port ({0})".format(config.https_port))

    if config.cert_days < 1:
        raise errors.ConfigurationError("--cert-days must be at least 1.")

    if config.rsa_key_size < 2048:
        raise errors.ConfigurationError(
            "--rsa-key-size must be at least 2048, not {0}.".format(config.rsa_key_size))

    if not _PHP_VERSION_RE.match(str(config.php_version)):
        raise errors.ConfigurationError(
            "Invalid PHP version {0!r}, expected something like 8.4.".format(
                config.php_version))

    if config.settle_delay < 0:
        raise errors.ConfigurationError("--settle-delay cannot be negative.")
