"""Tests for brewhttpd._internal.cli."""
import argparse
import os
import sys
import unittest
from unittest import mock

import pytest

import brewhttpd
from brewhttpd._internal import cli
import brewhttpd.tests.util as test_util


class ArgumentTypesTest(unittest.TestCase):
    """Tests for the argument type converters."""

    def test_nonnegative_int(self):
        assert cli.nonnegative_int("0") == 0
        with pytest.raises(argparse.ArgumentTypeError):
            cli.nonnegative_int("-1")
        with pytest.raises(argparse.ArgumentTypeError):
            cli.nonnegative_int("many")

    def test_port(self):
        assert cli.port("8080") == 8080
        with pytest.raises(argparse.ArgumentTypeError):
            cli.port("0")
        with pytest.raises(argparse.ArgumentTypeError):
            cli.port("65536")


class ParseTest(test_util.TempDirTestCase):
    """Tests for brewhttpd._internal.cli.prepare_and_parse_args."""

    def setUp(self):
        super().setUp()
        # never read the cli.ini of the user running the tests
        self.patcher = mock.patch.dict(
            "brewhttpd._internal.constants.CLI_DEFAULTS",
            {"config_files": [os.path.join(self.tempdir, "cli.ini")]})
        self.patcher.start()

    def tearDown(self):
        self.patcher.stop()
        super().tearDown()

    @staticmethod
    def _parse(args):
        return cli.prepare_and_parse_args(args)

    def test_defaults(self):
        namespace = self._parse([])
        assert namespace.verb == "setup"
        assert namespace.http_port == 8080
        assert namespace.https_port == 443
        assert namespace.server_name == "localhost"
        assert namespace.document_root == "~/Sites"
        assert namespace.php_version == "8.4"
        assert namespace.cert_days == 365
        assert namespace.rsa_key_size == 2048
        assert namespace.brew_prefix is None
        assert not namespace.no_trust
        assert not namespace.no_restart
        assert namespace.settle_delay == 3.0
        assert namespace.verbose_count == 0

    def test_verbs_and_flags(self):
        namespace = self._parse(["rollback", "-vv", "--no-restart",
                                 "--http-port", "80", "--https-port", "8443",
                                 "--php-version", "8.3", "--settle-delay", "0.5"])
        assert namespace.verb == "rollback"
        assert namespace.verbose_count == 2
        assert namespace.no_restart
        assert namespace.http_port == 80
        assert namespace.https_port == 8443
        assert namespace.php_version == "8.3"
        assert namespace.settle_delay == 0.5

    def test_unknown_verb(self):
        with mock.patch("sys.stderr"):
            with pytest.raises(SystemExit):
                self._parse(["deploy"])

    def test_bad_port(self):
        with mock.patch("sys.stderr"):
            with pytest.raises(SystemExit):
                self._parse(["--http-port", "http"])

    def test_version(self):
        with mock.patch("sys.stdout") as mock_stdout:
            with pytest.raises(SystemExit):
                self._parse(["--version"])
        output = "".join(call[0][0] for call in mock_stdout.write.call_args_list)
        assert brewhttpd.__version__ in output

    def test_config_file(self):
        ini = os.path.join(self.tempdir, "custom.ini")
        with open(ini, "w") as f:
            f.write("server-name = dev.localhost\nhttps-port = 8443\nno-trust = true\n")
        namespace = self._parse(["-c", ini, "verify"])
        assert namespace.verb == "verify"
        assert namespace.server_name == "dev.localhost"
        assert namespace.https_port == 8443
        assert namespace.no_trust

    def test_flag_default_is_a_copy(self):
        files = cli.flag_default("config_files")
        files.append("other.ini")
        assert "other.ini" not in cli.flag_default("config_files")


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
