"""Tests for brewhttpd._internal.apache.editor."""
import os
import sys
import unittest
from unittest import mock

import pytest

from brewhttpd import errors
from brewhttpd._internal.apache.editor import ConfigFile
import brewhttpd.tests.util as test_util

SAMPLE = """\
Listen 8080
#LoadModule ssl_module lib/httpd/modules/mod_ssl.so
    #LoadModule rewrite_module lib/httpd/modules/mod_rewrite.so
ServerName old.example.com
"""


class ConfigFileTest(unittest.TestCase):
    """Tests for in-memory edits of ConfigFile."""

    def setUp(self):
        self.conf = ConfigFile("/etc/httpd.conf", SAMPLE)

    def test_text_round_trips(self):
        assert self.conf.text == SAMPLE
        assert not self.conf.changed

    def test_crlf_unchanged(self):
        conf = ConfigFile("x.conf", "ServerName a\r\nListen 80\r\n")
        assert not conf.changed
        assert conf.lines == ["ServerName a\r", "Listen 80\r"]

    def test_no_final_newline(self):
        conf = ConfigFile("x.conf", "Listen 80")
        assert not conf.changed
        conf.append("ServerName localhost")
        assert conf.text == "Listen 80\nServerName localhost\n"

    def test_form_feed_is_not_a_line_break(self):
        conf = ConfigFile("x.conf", "# section\x0c\nListen 80\n")
        assert len(conf.lines) == 2
        assert not conf.changed

    def test_empty(self):
        conf = ConfigFile("/etc/empty.conf")
        assert conf.text == ""
        assert not conf.changed

    def test_contains_and_find(self):
        assert self.conf.contains(r"^Listen 8080$")
        assert not self.conf.contains(r"^Listen 443")
        match = self.conf.find(r"^ServerName (\S+)")
        assert match.group(1) == "old.example.com"
        assert self.conf.find("^Nope") is None

    def test_delete_lines(self):
        assert self.conf.delete_lines(r"^Listen ") == 1
        assert not self.conf.contains(r"^Listen ")
        assert self.conf.delete_lines(r"^Listen ") == 0

    def test_append(self):
        self.conf.append("\n# marker\nInclude foo\n")
        assert self.conf.lines[-3:] == ["", "# marker", "Include foo"]
        assert self.conf.changed

    def test_replace_or_append_replaces(self):
        assert self.conf.replace_or_append(r"^ServerName ", "ServerName localhost")
        assert self.conf.lines.count("ServerName localhost") == 1
        assert not self.conf.contains("old.example.com")

    def test_replace_or_append_appends(self):
        assert not self.conf.replace_or_append(r"^User ", "User alice")
        assert self.conf.lines[-1] == "User alice"

    def test_substitute_is_literal(self):
        conf = ConfigFile("x", '<Directory "/a.b">\n<Directory "/aXb">\n')
        assert conf.substitute('<Directory "/a.b"', '<Directory "/c"') == 1
        assert conf.lines == ['<Directory "/c">', '<Directory "/aXb">']

    def test_uncomment_keeps_indentation(self):
        assert self.conf.uncomment("LoadModule ssl_module") == 1
        assert self.conf.uncomment("LoadModule rewrite_module") == 1
        assert "LoadModule ssl_module lib/httpd/modules/mod_ssl.so" in self.conf.lines
        assert ("    LoadModule rewrite_module lib/httpd/modules/mod_rewrite.so"
                in self.conf.lines)

    def test_uncomment_idempotent(self):
        self.conf.uncomment("LoadModule ssl_module")
        text = self.conf.text
        assert self.conf.uncomment("LoadModule ssl_module") == 0
        assert self.conf.text == text

    def test_ensure_block(self):
        assert self.conf.ensure_block("# marker", "\n# marker\nfoo\n")
        text = self.conf.text
        assert not self.conf.ensure_block("# marker", "\n# marker\nfoo\n")
        assert self.conf.text == text


class CommentBlockTest(unittest.TestCase):
    """Tests for ConfigFile.comment_block."""

    TEXT = """\
Listen 8443
<VirtualHost _default_:8443>
# General setup
DocumentRoot "/var/www"
<FilesMatch "\\.php$">
    SSLOptions +StdEnvVars
</FilesMatch>
</VirtualHost>
<VirtualHost *:443>
</VirtualHost>
"""

    def _call(self, conf):
        return conf.comment_block(r"^\s*<VirtualHost _default_:8443>", r"^\s*</VirtualHost>")

    def test_comments_only_the_block(self):
        conf = ConfigFile("ssl.conf", self.TEXT)
        assert self._call(conf) == 6
        assert conf.lines[0] == "Listen 8443"
        assert conf.lines[1] == "#<VirtualHost _default_:8443>"
        assert conf.lines[2] == "# General setup"
        assert conf.lines[5] == "#    SSLOptions +StdEnvVars"
        assert conf.lines[7] == "#</VirtualHost>"
        assert conf.lines[8] == "<VirtualHost *:443>"
        assert conf.lines[9] == "</VirtualHost>"

    def test_idempotent(self):
        conf = ConfigFile("ssl.conf", self.TEXT)
        self._call(conf)
        text = conf.text
        assert self._call(conf) == 0
        assert conf.text == text


class LoadSaveTest(test_util.TempDirTestCase):
    """Tests for reading, writing and backing up ConfigFiles."""

    def setUp(self):
        super().setUp()
        self.path = os.path.join(self.tempdir, "httpd.conf")
        with open(self.path, "w") as f:
            f.write(SAMPLE)

    def test_load_missing(self):
        with pytest.raises(errors.NoInstallationError):
            ConfigFile.load(os.path.join(self.tempdir, "missing.conf"))

    def test_save_only_when_changed(self):
        conf = ConfigFile.load(self.path)
        with mock.patch("brewhttpd._internal.apache.editor.sudo.write_file") as mock_write:
            assert not conf.save()
            assert not mock_write.called

    def test_save(self):
        conf = ConfigFile.load(self.path)
        conf.delete_lines("^Listen")
        assert conf.save()
        assert not conf.changed
        with open(self.path) as f:
            assert "Listen" not in f.read()

    def test_crlf_preserved_on_save(self):
        with open(self.path, "w", newline="") as f:
            f.write("Listen 80\r\nServerName old\r\n")
        conf = ConfigFile.load(self.path)
        assert not conf.changed
        conf.delete_lines("^Listen")
        conf.save()
        with open(self.path, newline="") as f:
            assert f.read() == "ServerName old\r\n"

    def test_backup_once(self):
        conf = ConfigFile.load(self.path)
        backup = conf.backup()
        assert backup == self.path + ".backup"
        with open(backup) as f:
            assert f.read() == SAMPLE

        with open(self.path, "w") as f:
            f.write("changed\n")
        assert ConfigFile.load(self.path).backup() is None
        with open(backup) as f:
            assert f.read() == SAMPLE

    @mock.patch("brewhttpd._internal.apache.editor.sudo.run")
    @mock.patch("brewhttpd._internal.apache.editor.shutil.copy2")
    def test_backup_escalates(self, mock_copy, mock_run):
        mock_copy.side_effect = PermissionError
        ConfigFile.load(self.path).backup()
        mock_run.assert_called_once_with(
            ["cp", "-p", self.path, self.path + ".backup"])


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
