"""brewhttpd command line argument & config processing."""
import argparse
import copy
import logging
from typing import Any
from typing import List
from typing import Optional

import configargparse

import brewhttpd
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)

VERBS = ["setup", "verify", "rollback"]

SHORT_USAGE = """
  brewhttpd [SUBCOMMAND] [options]

brewhttpd installs Apache, PHP and OpenSSL with Homebrew and configures them
to serve ~/Sites over HTTP and HTTPS with a locally trusted certificate.
Running it again is safe: every edit is idempotent.

  setup        Install and configure everything (default)
  verify       Only request the HTTP and HTTPS virtual hosts
  rollback     Restore the Apache configuration saved before the first setup
"""


def flag_default(name: str) -> Any:
    """Fresh copy of the default of a command line option."""
    return copy.deepcopy(constants.CLI_DEFAULTS[name])


def nonnegative_int(value: str) -> int:
    """argparse type for counts and sizes: an integer, 0 or more."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("{0!r} is not a whole number".format(value))
    if number < 0:
        raise argparse.ArgumentTypeError("{0} is negative".format(number))
    return number


def port(value: str) -> int:
    """argparse type for a TCP port."""
    number = nonnegative_int(value)
    if not 0 < number <= 65535:
        raise argparse.ArgumentTypeError("port must be between 1 and 65535")
    return number


def prepare_and_parse_args(args: Optional[List[str]]) -> argparse.Namespace:
    """Parse args, merged with the config files in ``CLI_DEFAULTS``.

    :param list args: arguments after the program name
    :rtype: argparse.Namespace

    """
    parser = configargparse.ArgParser(
        prog="brewhttpd",
        usage=SHORT_USAGE,
        args_for_setting_config_path=["-c", "--config"],
        default_config_files=flag_default("config_files"),
        config_arg_help_message="read options from this file instead of {0}".format(
            ", ".join(flag_default("config_files"))))

    parser.add_argument(
        "verb", nargs="?", choices=VERBS, default=flag_default("verb"),
        help="subcommand to run (default: %(default)s)")
    parser.add_argument(
        "--version", action="version",
        version="%(prog)s {0}".format(brewhttpd.__version__),
        help="print the brewhttpd version and exit")

    parser.add_argument(
        "-v", "--verbose", dest="verbose_count", action="count",
        default=flag_default("verbose_count"),
        help="Log more to the terminal; repeat for even more (-vv).")
    # config file only; takes precedence over -v
    parser.add_argument(
        "--verbose-level", dest="verbose_level", type=int,
        default=flag_default("verbose_level"), help=argparse.SUPPRESS)
    parser.add_argument(
        "-q", "--quiet", dest="quiet", action="store_true",
        default=flag_default("quiet"),
        help="Only print errors.")
    parser.add_argument(
        "--debug", action="store_true", default=flag_default("debug"),
        help="Print the full traceback when brewhttpd fails.")
    parser.add_argument(
        "--max-log-backups", type=nonnegative_int,
        default=flag_default("max_log_backups"),
        help="Old debug logs to keep; the log is rotated on every run. "
             "0 keeps appending to a single brewhttpd.log. (default: %(default)s)")
    parser.add_argument(
        "--strict-permissions", action="store_true",
        default=flag_default("strict_permissions"),
        help="Fail unless the config (0755) and logs (0700) directories "
             "belong to you with exactly those modes.")

    apache = parser.add_argument_group("apache")
    apache.add_argument(
        "--http-port", type=port, default=flag_default("http_port"),
        help="Port of the HTTP virtual host. (default: %(default)s)")
    apache.add_argument(
        "--https-port", type=port, default=flag_default("https_port"),
        help="Port of the HTTPS virtual host. (default: %(default)s)")
    apache.add_argument(
        "--server-name", default=flag_default("server_name"),
        help="ServerName of both virtual hosts and CN of the certificate. "
             "(default: %(default)s)")
    apache.add_argument(
        "--document-root", default=flag_default("document_root"),
        help="Directory served by both virtual hosts. (default: %(default)s)")
    apache.add_argument(
        "--php-version", default=flag_default("php_version"),
        help="PHP version installed from Homebrew (php@VERSION). "
             "(default: %(default)s)")
    apache.add_argument(
        "--run-group", default=flag_default("run_group"),
        help="Group Apache runs as; the user is always the invoking user. "
             "(default: %(default)s)")
    apache.add_argument(
        "--brew-prefix", default=flag_default("brew_prefix"),
        help="Homebrew prefix. (default: output of brew --prefix)")

    cert = parser.add_argument_group("certificate")
    cert.add_argument(
        "--cert-days", type=nonnegative_int, default=flag_default("cert_days"),
        help="Validity of the self-signed certificate in days. (default: %(default)s)")
    cert.add_argument(
        "--rsa-key-size", type=nonnegative_int, default=flag_default("rsa_key_size"),
        help="Size of the RSA key. (default: %(default)s)")
    cert.add_argument(
        "--no-trust", action="store_true", default=flag_default("no_trust"),
        help="Do not add the certificate to the System keychain.")

    flow = parser.add_argument_group("flow")
    flow.add_argument(
        "--no-brew-update", action="store_true", default=flag_default("no_brew_update"),
        help="Skip brew update before installing packages.")
    flow.add_argument(
        "--no-restart", action="store_true", default=flag_default("no_restart"),
        help="Do not restart Apache (and do not run the smoke tests).")
    flow.add_argument(
        "--settle-delay", type=float, default=flag_default("settle_delay"),
        help="Seconds to wait after restarting Apache. (default: %(default)s)")

    paths = parser.add_argument_group("paths")
    paths.add_argument(
        "--config-dir", default=flag_default("config_dir"),
        help="Directory of the state file. (default: %(default)s)")
    paths.add_argument(
        "--logs-dir", default=flag_default("logs_dir"),
        help="Logs directory. (default: %(default)s)")

    parsed = parser.parse_args(args)
    logger.debug("Parsed arguments: %r", parsed)
    return parsed
