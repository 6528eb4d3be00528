"""Record of the last successful setup, kept in an INI file."""
import datetime
import logging
import os
from typing import Any
from typing import Dict
from typing import Iterable

import configobj

import brewhttpd
from brewhttpd import configuration
from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)

# Options of the run copied into the [setupparams] section
SAVED_PARAMS = ["http_port", "https_port", "server_name", "document_root",
                "php_version", "brew_prefix"]


def save_state(config: configuration.NamespaceConfig, backups: Iterable[str],
               cert_fingerprint: str) -> configobj.ConfigObj:
    """Write the state file for a successful setup.

    Backups recorded by an earlier run are kept, so the list always names
    every ``.backup`` copy brewhttpd has made.

    :param .NamespaceConfig config: configuration of the run
    :param backups: backups created by this run
    :param str cert_fingerprint: SHA-256 fingerprint of the certificate

    :returns: Configuration object for the new state file
    :rtype: configobj.ConfigObj

    """
    util.make_or_verify_dir(config.config_dir, constants.CONFIG_DIRS_MODE,
                            config.strict_permissions)
    state = configobj.ConfigObj(config.state_path, encoding='utf-8',
                                default_encoding='utf-8')
    previous = state.get("backups", [])
    if isinstance(previous, str):
        previous = [previous]
    all_backups = list(previous)
    for backup in backups:
        if backup not in all_backups:
            all_backups.append(backup)

    state["version"] = brewhttpd.__version__
    state["updated"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    state["cert_path"] = config.cert_path
    state["key_path"] = config.key_path
    state["cert_fingerprint"] = cert_fingerprint
    state["backups"] = all_backups

    if "setupparams" not in state:
        state["setupparams"] = {}
        state.comments["setupparams"] = ["", "Options used by the last setup"]
    params: Dict[str, Any] = {}
    for name in SAVED_PARAMS:
        params[name] = getattr(config, name)
    state["setupparams"].update(params)

    logger.debug("Writing state file %s", config.state_path)
    state.write()
    return state


def load_state(config: configuration.NamespaceConfig) -> configobj.ConfigObj:
    """Read the state file.

    :raises .errors.StateError: if there is no readable state file

    """
    if not os.path.isfile(config.state_path):
        raise errors.StateError(
            "No state file at {0}; run brewhttpd setup first.".format(config.state_path))
    try:
        return configobj.ConfigObj(config.state_path, encoding='utf-8',
                                   default_encoding='utf-8', file_error=True)
    except (configobj.ConfigObjError, IOError) as error:
        raise errors.StateError(
            "Unable to read state file {0}: {1}".format(config.state_path, error))


def backups_from_state(state: configobj.ConfigObj) -> Dict[str, str]:
    """Map configuration files to the backups listed in state."""
    backups = state.get("backups", [])
    if isinstance(backups, str):
        backups = [backups]
    suffix = constants.BACKUP_SUFFIX
    return {backup[:-len(suffix)]: backup for backup in backups if backup.endswith(suffix)}
