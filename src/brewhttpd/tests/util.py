"""Fixtures shared by the brewhttpd tests.

"""
import importlib.resources
import logging
import os
import shutil
import tempfile
import unittest
from unittest import mock

from brewhttpd import configuration
from brewhttpd._internal import constants

PREFIX_PLACEHOLDER = "@PREFIX@"

# Homebrew configuration files shipped in testdata, relative to etc/httpd
HTTPD_FILES = ["httpd.conf", os.path.join("extra", "httpd-ssl.conf"),
               os.path.join("extra", "httpd-vhosts.conf")]


def load_vector(*names: str) -> str:
    """Text of a file under brewhttpd/tests/testdata."""
    vector_ref = importlib.resources.files("brewhttpd.tests").joinpath("testdata", *names)
    return vector_ref.read_text(encoding="utf-8")


def make_fake_prefix(prefix: str, php_version: str = "8.4") -> None:
    """Lay out the part of a Homebrew prefix brewhttpd touches under prefix.

    The stock configuration files are copied from testdata with their
    paths pointing inside prefix, and an empty PHP module is created.

    """
    httpd_root = os.path.join(prefix, "etc", "httpd")
    for name in HTTPD_FILES:
        dest = os.path.join(httpd_root, name)
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        with open(dest, "w") as f:
            f.write(load_vector(*name.split(os.sep)).replace(PREFIX_PLACEHOLDER, prefix))

    php_modules = os.path.join(prefix, "opt", "php@" + php_version, "lib", "httpd", "modules")
    os.makedirs(php_modules)
    open(os.path.join(php_modules, "libphp.so"), "w").close()


class TempDirTestCase(unittest.TestCase):
    """Gives each test a fresh self.tempdir."""

    def setUp(self):
        self.tempdir = tempfile.mkdtemp()

    def tearDown(self):
        # handlers added by log.pre_arg_parse_setup outlive the test otherwise
        logging.shutdown()
        logging.getLogger().handlers = []
        shutil.rmtree(self.tempdir)


class ConfigTestCase(TempDirTestCase):
    """self.config: defaults, with every path inside self.tempdir.

    The Homebrew prefix is populated by `make_fake_prefix`.

    """
    def setUp(self):
        super().setUp()
        namespace = mock.MagicMock(**constants.CLI_DEFAULTS)
        self.config = configuration.NamespaceConfig(namespace)
        self.config.verb = "setup"
        self.config.config_dir = os.path.join(self.tempdir, "config")
        self.config.logs_dir = os.path.join(self.tempdir, "logs")
        self.config.document_root = os.path.join(self.tempdir, "Sites")
        self.config.brew_prefix = os.path.join(self.tempdir, "homebrew")
        self.config.settle_delay = 0
        make_fake_prefix(self.config.brew_prefix)
