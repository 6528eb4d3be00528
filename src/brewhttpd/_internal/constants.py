"""brewhttpd constants."""
import logging
import os
from typing import Any
from typing import Dict

CONFIG_DIR = os.path.join(
    os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")), "brewhttpd")
"""Directory holding cli.ini and the saved state of the last run."""

CLI_DEFAULTS: Dict[str, Any] = dict(  # noqa
    config_files=[
        os.path.join(CONFIG_DIR, "cli.ini"),
    ],

    # Main parser
    verb="setup",
    verbose_count=0,
    verbose_level=None,
    quiet=False,
    debug=False,
    max_log_backups=100,
    strict_permissions=False,

    # Apache
    http_port=8080,
    https_port=443,
    server_name="localhost",
    document_root="~/Sites",
    php_version="8.4",
    run_group="staff",
    brew_prefix=None,

    # Certificate
    cert_days=365,
    rsa_key_size=2048,
    no_trust=False,

    # Flow
    no_brew_update=False,
    no_restart=False,
    settle_delay=3.0,

    # Paths
    config_dir=CONFIG_DIR,
    logs_dir=os.path.expanduser("~/Library/Logs/brewhttpd"),
)
"""Defaults for CLI flags and `brewhttpd.configuration.NamespaceConfig` attributes."""

QUIET_LOGGING_LEVEL = logging.ERROR
"""Logging level to use in quiet mode."""

DEFAULT_LOGGING_LEVEL = logging.WARNING
"""Default logging level to use when not in quiet mode."""

CONFIG_DIRS_MODE = 0o755
"""Directory mode for ``config_dir``."""

STATE_FILENAME = "state.conf"
"""Name of the file in ``config_dir`` recording the last successful setup."""

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
"""Official Homebrew installer."""

HOMEBREW_SERVICE = "httpd"
"""Name of the brew service running Apache."""

OPENSSL_FORMULA = "openssl@3"

SYSTEM_KEYCHAIN = "/Library/Keychains/System.keychain"
"""Keychain the certificate is trusted in."""

BUILTIN_APACHE_PLIST = "/System/Library/LaunchDaemons/org.apache.httpd.plist"
"""launchd job of the Apache bundled with macOS."""

SUDO_KEEPALIVE_INTERVAL = 60
"""Seconds between two ``sudo -n true`` refreshes."""

BACKUP_SUFFIX = ".backup"
"""Suffix of the one-time copies made before the first edit."""

CERT_BASENAME = "localhost"
"""Basename of the ``.crt``/``.key`` pair written to the ssl directory."""

CERT_SAN_IPS = ["127.0.0.1"]
"""IP addresses always added to the certificate's subjectAltName."""

REQUEST_TIMEOUT = 10
"""Seconds to wait for the smoke test requests."""

ENABLED_MODULES = ["ssl_module", "socache_shmcb_module", "rewrite_module"]
"""Modules shipped commented out in Homebrew's httpd.conf that get enabled."""

ENABLED_INCLUDES = ["extra/httpd-ssl.conf", "extra/httpd-vhosts.conf"]
"""Includes, relative to ``etc/httpd``, that get uncommented."""

DEFAULT_SSL_VHOST = "<VirtualHost _default_:8443>"
"""Opening tag of the stock virtual host in httpd-ssl.conf."""

PHP_HANDLER_MARKER = "# PHP configuration"
"""Comment marking the PHP handler block appended to httpd.conf."""

USERS_INCLUDE_MARKER = "# include per-user settings"
"""Comment marking the per-user include appended to httpd.conf."""
