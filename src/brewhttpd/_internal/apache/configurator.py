"""Homebrew Apache configurator."""
import logging
import os
import time
from typing import Dict
from typing import List
from typing import Optional

from brewhttpd import configuration
from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants
from brewhttpd._internal import sudo
from brewhttpd._internal.apache import httpd_conf
from brewhttpd._internal.apache import templates
from brewhttpd._internal.apache.editor import ConfigFile
from brewhttpd._internal.brew import Homebrew

logger = logging.getLogger(__name__)


class ApacheConfigurator:
    """Configures the Apache installed by Homebrew for local development.

    The main configuration, the stock SSL configuration and the virtual
    hosts configuration are edited in place; a ``.backup`` copy of each is
    taken before the first edit ever made to it.

    :ivar config: Configuration.
    :type config: :class:`~brewhttpd.configuration.NamespaceConfig`

    :ivar brew: Homebrew used to restart the service
    :type brew: :class:`~brewhttpd._internal.brew.Homebrew`

    """
    def __init__(self, config: configuration.NamespaceConfig,
                 brew: Optional[Homebrew] = None) -> None:
        self.config = config
        self.brew = brew if brew is not None else Homebrew()

    @property
    def managed_files(self) -> List[str]:
        """Configuration files that are backed up before being edited."""
        return [self.config.httpd_conf, self.config.ssl_conf, self.config.vhosts_conf]

    def stop_builtin_apache(self) -> None:
        """Stop the Apache bundled with macOS, ignoring any failure."""
        for cmd in (["apachectl", "stop"],
                    ["launchctl", "unload", "-w", constants.BUILTIN_APACHE_PLIST]):
            try:
                sudo.run(cmd, log=logger.debug)
            except errors.SubprocessError:
                logger.debug("Ignoring failure of %s", " ".join(cmd))

    def backup_configs(self) -> List[str]:
        """Take the one-time backups of the managed configuration files.

        :returns: paths of the backups created by this call
        :rtype: list

        """
        created = []
        for path in self.managed_files:
            backup = ConfigFile.load(path).backup()
            if backup is not None:
                created.append(backup)
        return created

    def existing_backups(self) -> Dict[str, str]:
        """Map managed files to their backup, for backups found on disk."""
        backups = {}
        for path in self.managed_files:
            backup = path + constants.BACKUP_SUFFIX
            if os.path.isfile(backup):
                backups[path] = backup
        return backups

    def write_user_config(self) -> str:
        """Write the per-user ``<Directory>`` configuration.

        :returns: path of the per-user configuration
        :rtype: str

        """
        sudo.makedirs(self.config.users_conf_dir)
        path = self.config.user_conf
        sudo.write_file(path, templates.user_conf(self.config.document_root))
        return path

    def configure_main(self) -> Dict[str, bool]:
        """Apply every edit of ``httpd.conf`` and save it.

        :returns: outcome of the individual edits, keyed by edit name
        :rtype: dict

        :raises .errors.NoInstallationError: if the PHP module is missing

        """
        conf = ConfigFile.load(self.config.httpd_conf)
        outcome = {
            "users_include": httpd_conf.add_users_include(conf, self.config.users_conf_dir),
            "listen": httpd_conf.set_listen(conf, self.config.ports),
            "server_name_replaced": httpd_conf.set_server_name(conf, self.config.server_name),
            "modules": bool(httpd_conf.enable_modules_and_includes(
                conf, self.config.httpd_root)),
            "document_root": httpd_conf.set_document_root(conf, self.config.document_root),
        }
        httpd_conf.configure_php(conf, self.config.php_module)
        httpd_conf.set_run_user(conf, util.current_user(), self.config.run_group)
        conf.save()
        return outcome

    def disable_default_ssl_vhost(self) -> int:
        """Comment out the stock ``_default_:8443`` virtual host.

        ``Listen`` lines of ``httpd-ssl.conf`` for our ports are commented
        too; `httpd_conf.set_listen` keeps the only ones in ``httpd.conf``.

        :returns: number of lines commented
        :rtype: int

        """
        conf = ConfigFile.load(self.config.ssl_conf)
        count = conf.comment_block("^\\s*" + constants.DEFAULT_SSL_VHOST,
                                   r"^\s*</VirtualHost>")
        for port in self.config.ports:
            count += conf.sub(r"^(\s*)(Listen\s+{0}(\s|$))".format(port), r"\g<1>#\g<2>")
        conf.save()
        return count

    def write_vhosts(self) -> None:
        """Overwrite ``httpd-vhosts.conf`` with the HTTP and HTTPS hosts."""
        sudo.write_file(self.config.vhosts_conf, templates.vhosts_conf(self.config))

    def config_test(self) -> None:
        """Check the configuration of Apache for errors.

        :raises .errors.MisconfigurationError: If config_test fails

        """
        try:
            sudo.run([self.config.httpd_bin, "-t"])
        except errors.SubprocessError:
            raise errors.MisconfigurationError("Apache config test failed.")

    def restart(self) -> None:
        """Restart the httpd brew service and give it time to come up.

        :raises .errors.MisconfigurationError: If the restart fails

        """
        self.brew.restart_service(constants.HOMEBREW_SERVICE)
        if self.config.settle_delay:
            time.sleep(self.config.settle_delay)

    def rollback(self, backups: Optional[Dict[str, str]] = None) -> List[str]:
        """Restore managed files from their backups.

        :param dict backups: maps files to backups, defaults to the backups
            found next to the managed files

        :returns: restored files
        :rtype: list

        :raises .errors.RollbackError: if there is nothing to restore or a
            backup cannot be read

        """
        if backups is None:
            backups = self.existing_backups()
        if not backups:
            raise errors.RollbackError(
                "No backups found, brewhttpd has not modified the Apache configuration.")
        restored = []
        for path, backup in sorted(backups.items()):
            try:
                with open(backup) as f:
                    contents = f.read()
            except OSError as error:
                raise errors.RollbackError(
                    "Unable to read backup {0}: {1}".format(backup, error))
            sudo.write_file(path, contents)
            logger.info("Restored %s from %s", path, backup)
            restored.append(path)
        return restored
