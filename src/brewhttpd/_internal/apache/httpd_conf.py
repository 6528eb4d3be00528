"""Edits of Homebrew's main ``httpd.conf``.

Each function applies one idempotent change to a loaded
`~brewhttpd._internal.apache.editor.ConfigFile`; none of them save.

"""
import logging
import os
import re
from typing import Iterable

from brewhttpd import errors
from brewhttpd._internal import constants
from brewhttpd._internal.apache import templates
from brewhttpd._internal.apache.editor import ConfigFile

logger = logging.getLogger(__name__)

DOCUMENT_ROOT_RE = re.compile(r'^DocumentRoot\s+"([^"]*)"')
SERVER_NAME_RE = re.compile(r"^ServerName\s")


def add_users_include(conf: ConfigFile, users_conf_dir: str) -> bool:
    """Include every per-user configuration once.

    :returns: True if the include was added
    :rtype: bool

    """
    include = "Include {0}/*.conf".format(users_conf_dir)
    if conf.contains("^" + re.escape(include) + r"\s*$"):
        return False
    conf.append(templates.users_include(users_conf_dir))
    return True


def _listen_re(port: int) -> str:
    return r"^Listen\s+{0}(\s|$)".format(port)


def set_listen(conf: ConfigFile, ports: Iterable[int]) -> bool:
    """Make Apache listen on each port exactly once.

    Existing ``Listen`` lines for the ports are deleted and fresh ones are
    appended, unless each port already has a single ``Listen`` line.

    :returns: True if the file was modified
    :rtype: bool

    """
    ports = list(ports)
    counts = [sum(1 for line in conf.lines if re.search(_listen_re(port), line))
              for port in ports]
    if all(count == 1 for count in counts):
        return False
    for port in ports:
        conf.delete_lines(_listen_re(port))
    for port in ports:
        conf.append("Listen {0}".format(port))
    return True


def set_server_name(conf: ConfigFile, server_name: str) -> bool:
    """Ensure exactly one ``ServerName`` directive in the main scope.

    The first existing directive is rewritten in place and any later ones
    are dropped.

    :returns: True if an existing directive was replaced, False if one
        was appended
    :rtype: bool

    """
    directive = "ServerName {0}".format(server_name)
    found = [i for i, line in enumerate(conf.lines) if SERVER_NAME_RE.search(line)]
    if not found:
        conf.append(directive)
        return False
    conf.lines[found[0]] = directive
    for i in reversed(found[1:]):
        del conf.lines[i]
    return True


def enable_modules_and_includes(conf: ConfigFile, httpd_root: str) -> int:
    """Uncomment the SSL, socache, rewrite modules and the ssl/vhosts includes.

    :returns: number of lines uncommented
    :rtype: int

    """
    count = 0
    for module in constants.ENABLED_MODULES:
        count += conf.uncomment("LoadModule {0}".format(module))
    for include in constants.ENABLED_INCLUDES:
        count += conf.uncomment("Include {0}".format(os.path.join(httpd_root, include)))
    return count


def set_document_root(conf: ConfigFile, document_root: str) -> bool:
    """Point ``DocumentRoot`` and its ``<Directory>`` block at document_root.

    Only the ``<Directory>`` section of the previous document root is
    rewritten; other sections (e.g. cgi-bin) are left alone.

    :returns: True if the file was modified
    :rtype: bool

    """
    match = conf.find(DOCUMENT_ROOT_RE)
    new_line = 'DocumentRoot "{0}"'.format(document_root)
    if match is None:
        logger.debug("No DocumentRoot in %s, appending one", conf.path)
        conf.append(new_line)
        return True
    old_root = match.group(1)
    if old_root == document_root:
        return False
    conf.replace_line(DOCUMENT_ROOT_RE, new_line)
    conf.substitute('<Directory "{0}"'.format(old_root),
                    '<Directory "{0}"'.format(document_root))
    return True


def configure_php(conf: ConfigFile, php_module: str) -> None:
    """Load mod_php, prefer index.php and hand ``.php`` files to PHP.

    :raises .errors.NoInstallationError: if php_module is not installed

    """
    if not os.path.isfile(php_module):
        raise errors.NoInstallationError("PHP module not found: {0}".format(php_module))

    conf.replace_or_append(r"^\s*#?\s*LoadModule\s+php_module\b",
                           "LoadModule php_module {0}".format(php_module))
    conf.sub(r"^(\s*)DirectoryIndex index\.html\b", r"\g<1>DirectoryIndex index.php index.html")
    conf.ensure_block(constants.PHP_HANDLER_MARKER, templates.php_handler())


def set_run_user(conf: ConfigFile, user: str, group: str) -> None:
    """Run Apache's workers as user:group."""
    conf.replace_line(r"^User ", "User {0}".format(user))
    conf.replace_line(r"^Group ", "Group {0}".format(group))
