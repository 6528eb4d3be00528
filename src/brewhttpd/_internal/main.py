"""brewhttpd main entry point."""
import logging
import sys
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

import brewhttpd
from brewhttpd import configuration
from brewhttpd import crypto_util
from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import cli
from brewhttpd._internal import constants
from brewhttpd._internal import keychain
from brewhttpd._internal import log
from brewhttpd._internal import site
from brewhttpd._internal import storage
from brewhttpd._internal import sudo
from brewhttpd._internal import verify as verify_mod
from brewhttpd._internal.apache.configurator import ApacheConfigurator
from brewhttpd._internal.brew import find_brew
from brewhttpd._internal.brew import Homebrew
from brewhttpd.display import util as display_util

logger = logging.getLogger(__name__)


def _ensure_macos() -> None:
    if not util.is_macos():
        raise errors.UnsupportedPlatformError("brewhttpd runs on macOS only.")


def _homebrew(config: configuration.NamespaceConfig) -> Homebrew:
    """Make sure Homebrew is installed and the prefix is known."""
    display_util.step("Checking Homebrew...")
    present = find_brew() is not None
    if not present:
        display_util.step("Installing Homebrew...")
    brew = Homebrew.ensure_installed()
    display_util.success("Homebrew present." if present else "Homebrew installed.")
    if not config.brew_prefix:
        config.brew_prefix = brew.prefix()
    logger.debug("Homebrew prefix: %s", config.brew_prefix)
    return brew


def _install_packages(config: configuration.NamespaceConfig, brew: Homebrew) -> None:
    display_util.step("Installing/updating httpd, php, openssl...")
    if not config.no_brew_update:
        brew.update()
    brew.install([constants.HOMEBREW_SERVICE, config.php_formula, constants.OPENSSL_FORMULA])
    display_util.success("Packages installed.")


def _configure_apache(config: configuration.NamespaceConfig,
                      configurator: ApacheConfigurator) -> List[str]:
    """Edit the Apache configuration.

    :returns: backups created during this run
    :rtype: list

    """
    display_util.step("Backing up configs...")
    backups = configurator.backup_configs()
    display_util.success("Backups done." if backups else "Backups already present.")

    display_util.step("Creating per-user Apache config...")
    configurator.write_user_config()
    display_util.success("User config created.")

    display_util.step("Configuring httpd.conf...")
    outcome = configurator.configure_main()
    display_util.success("Listening on {0} and {1}".format(*config.ports))
    if outcome["server_name_replaced"]:
        display_util.success("Replaced existing ServerName → {0}".format(config.server_name))
    else:
        display_util.success("Added ServerName {0}".format(config.server_name))
    display_util.success("Modules & includes enabled.")
    display_util.success("DocumentRoot set to {0}.".format(config.document_root))
    display_util.success("PHP module configured.")
    display_util.success("Apache will run as {0}:{1}.".format(
        util.current_user(), config.run_group))
    return backups


def _make_certificate(config: configuration.NamespaceConfig) -> str:
    """Generate and optionally trust the certificate.

    :returns: SHA-256 fingerprint of the certificate
    :rtype: str

    """
    display_util.step("Generating SSL certificates...")
    key_pem = crypto_util.make_key(config.rsa_key_size)
    cert_pem = crypto_util.make_self_signed_cert(
        key_pem, config.server_name,
        dns_names=crypto_util.dev_cert_names(config.server_name),
        ips=constants.CERT_SAN_IPS, days=config.cert_days)
    crypto_util.write_cert_and_key(config.cert_path, config.key_path, cert_pem, key_pem)
    crypto_util.verify_cert_matches_priv_key(config.cert_path, config.key_path)
    logger.info("Certificate %s valid until %s", config.cert_path,
                crypto_util.cert_expiry(config.cert_path).isoformat())
    display_util.success("SSL certs created.")

    if config.no_trust:
        logger.info("Not trusting %s as requested", config.cert_path)
    else:
        display_util.step("Trusting cert in System keychain...")
        keychain.add_trusted_cert(config.cert_path)
        display_util.success("Cert trusted in System keychain.")
    return crypto_util.sha256_fingerprint(config.cert_path)


def _verify(config: configuration.NamespaceConfig) -> None:
    display_util.step("Verifying HTTP...")
    verify_mod.check_http(config.server_name, config.http_port)
    display_util.success("HTTP OK")

    display_util.step("Verifying HTTPS...")
    if verify_mod.check_https(config.server_name, config.https_port):
        display_util.success("HTTPS OK")
    else:
        display_util.step("HTTPS failed; check trust/logs")


def setup(config: configuration.NamespaceConfig) -> None:
    """Install, configure, start and check Apache.

    :param config: Configuration object
    :type config: configuration.NamespaceConfig

    :returns: `None`
    :rtype: None

    """
    _ensure_macos()

    sudo.prime()
    sudo.KeepAlive().start()

    brew = _homebrew(config)
    configurator = ApacheConfigurator(config, brew)

    display_util.step("Stopping built-in Apache...")
    configurator.stop_builtin_apache()
    display_util.success("Built-in Apache stopped.")

    _install_packages(config, brew)

    display_util.step("Setting up {0}...".format(config.document_root))
    site.prepare_document_root(config.document_root)
    display_util.success("Document root at {0}.".format(config.document_root))

    backups = _configure_apache(config, configurator)
    fingerprint = _make_certificate(config)

    display_util.step("Commenting default SSL vhost...")
    configurator.disable_default_ssl_vhost()
    display_util.success("Default vhost disabled.")

    display_util.step("Writing custom vhosts...")
    configurator.write_vhosts()
    display_util.success("Custom vhosts written.")

    display_util.step("Testing Apache config...")
    configurator.config_test()
    display_util.success("Apache config valid.")

    display_util.step("Creating phpinfo...")
    site.write_phpinfo(config.document_root)
    display_util.step("Creating mod_rewrite test files...")
    site.write_rewrite_test(config.document_root)
    display_util.success("Rewrite test files created.")

    storage.save_state(config, backups, fingerprint)

    if config.no_restart:
        display_util.notify("Not restarting Apache; run brew services restart httpd.")
    else:
        display_util.step("Restarting httpd...")
        configurator.restart()
        _verify(config)

    display_util.success("Setup complete!\n"
                         "  • HTTP  {0}\n"
                         "  • HTTPS {1}\n"
                         "DocumentRoot: {2}".format(
                             verify_mod.http_url(config.server_name, config.http_port),
                             verify_mod.https_url(config.server_name, config.https_port),
                             config.document_root))
    display_util.notify("Tip: add custom domains in /etc/hosts if needed.")


def verify(config: configuration.NamespaceConfig) -> None:
    """Request the HTTP and HTTPS virtual hosts of the running Apache.

    Ports and server name come from the command line, falling back to the
    state of the last setup when they were left at their defaults.

    """
    try:
        state = storage.load_state(config)
    except errors.StateError:
        logger.debug("No usable state file, verifying with command line values")
    else:
        params = state.get("setupparams", {})
        for name, convert in (("http_port", int), ("https_port", int), ("server_name", str)):
            if name in params and getattr(config, name) == constants.CLI_DEFAULTS[name]:
                setattr(config, name, convert(params[name]))
    _verify(config)


def rollback(config: configuration.NamespaceConfig) -> None:
    """Restore the Apache configuration files saved before the first setup.

    Homebrew is never installed here: without brew, the prefix must come
    from ``--brew-prefix`` or the state file, and httpd is not restarted.

    :raises .errors.HomebrewError: if brew is missing and the prefix is unknown

    """
    _ensure_macos()

    exe = find_brew()
    brew = Homebrew(exe) if exe is not None else None
    backups: Dict[str, str] = {}
    try:
        state = storage.load_state(config)
    except errors.StateError:
        logger.debug("No usable state file, looking for backups on disk")
    else:
        backups = storage.backups_from_state(state)
        if not config.brew_prefix:
            config.brew_prefix = state.get("setupparams", {}).get("brew_prefix")
    if not config.brew_prefix:
        if brew is None:
            raise errors.HomebrewError(
                "Homebrew is not installed; pass --brew-prefix to restore its Apache "
                "configuration.")
        config.brew_prefix = brew.prefix()

    configurator = ApacheConfigurator(config, brew)
    display_util.step("Restoring Apache configuration...")
    restored = configurator.rollback(backups or None)
    display_util.success("Restored {0}.".format(", ".join(restored)))

    if config.no_restart:
        return
    if brew is None:
        display_util.notify("Homebrew not found, httpd was not restarted.")
        return
    display_util.step("Restarting httpd...")
    configurator.restart()
    display_util.success("httpd restarted.")


VERBS: Dict[str, Callable[[configuration.NamespaceConfig], None]] = {
    "setup": setup,
    "verify": verify,
    "rollback": rollback,
}


def main(cli_args: Optional[List[str]] = None) -> Optional[Union[str, int]]:
    """Run brewhttpd.

    :param cli_args: command line to brewhttpd, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status of brewhttpd
    :rtype: `str` or `int` or `None`

    """
    if cli_args is None:
        cli_args = sys.argv[1:]

    log.pre_arg_parse_setup()

    logger.debug("brewhttpd version: %s", brewhttpd.__version__)
    logger.debug("Arguments: %r", cli_args)

    # note: arg parser internally handles --help (and exits afterwards)
    args = cli.prepare_and_parse_args(cli_args)
    config = configuration.NamespaceConfig(args)

    log.post_arg_parse_setup(config)

    return VERBS[config.verb](config)
