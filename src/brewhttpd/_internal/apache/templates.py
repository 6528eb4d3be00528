"""Text written to Apache configuration files and the document root."""
from brewhttpd._internal import constants

USER_CONF = """\
<Directory "{document_root}">
  Options Indexes MultiViews FollowSymLinks
  AllowOverride All
  Require all granted
</Directory>
"""

USERS_INCLUDE = """
{marker}
Include {users_conf_dir}/*.conf
"""

PHP_HANDLER = """
{marker}
<FilesMatch \\.php$>
    SetHandler application/x-httpd-php
</FilesMatch>
"""

_VHOST_COMMON = """\
    ServerName {server_name}
    DocumentRoot "{document_root}"
    ErrorLog "{log_dir}/error_log"
    CustomLog "{log_dir}/access_log" common
"""

_VHOST_DIRECTORY = """\
    <Directory "{document_root}">
        Options Indexes FollowSymLinks
        AllowOverride All
        Require all granted
    </Directory>
"""

VHOSTS_CONF = ("# HTTP vhost\n"
               "<VirtualHost *:{http_port}>\n"
               + _VHOST_COMMON +
               "\n"
               + _VHOST_DIRECTORY +
               "</VirtualHost>\n"
               "\n"
               "# HTTPS vhost\n"
               "<VirtualHost *:{https_port}>\n"
               + _VHOST_COMMON +
               "\n"
               "    SSLEngine on\n"
               "    SSLCertificateFile \"{cert_path}\"\n"
               "    SSLCertificateKeyFile \"{key_path}\"\n"
               "\n"
               + _VHOST_DIRECTORY +
               "</VirtualHost>\n")

INDEX_HTML = "<html><body><h1>Apache is running!</h1></body></html>\n"

PHPINFO_PHP = "<?php\nphpinfo();\n"

REWRITE_SUCCESS_HTML = "<html><body><h1>Rewrite Test Successful!</h1></body></html>\n"

REWRITE_HTACCESS = """\
Options -Indexes
DirectoryIndex success.html

RewriteEngine On
RewriteRule ^$           success.html [L]
RewriteRule ^test$       success.html [L]
"""


def user_conf(document_root: str) -> str:
    """Per-user ``<Directory>`` block granting access to document_root."""
    return USER_CONF.format(document_root=document_root)


def users_include(users_conf_dir: str) -> str:
    """Include of every per-user configuration, preceded by its marker."""
    return USERS_INCLUDE.format(marker=constants.USERS_INCLUDE_MARKER,
                                users_conf_dir=users_conf_dir)


def php_handler() -> str:
    """Block handing ``.php`` files to mod_php."""
    return PHP_HANDLER.format(marker=constants.PHP_HANDLER_MARKER)


def vhosts_conf(config) -> str:
    """HTTP and HTTPS virtual hosts serving the document root.

    :param .NamespaceConfig config: configuration

    """
    return VHOSTS_CONF.format(
        http_port=config.http_port,
        https_port=config.https_port,
        server_name=config.server_name,
        document_root=config.document_root,
        log_dir=config.apache_log_dir,
        cert_path=config.cert_path,
        key_path=config.key_path,
    )
