"""Tests for brewhttpd.util."""
import errno
import os
import stat
import subprocess
import sys
import unittest
from unittest import mock

import pytest

from brewhttpd import errors
from brewhttpd import util
import brewhttpd.tests.util as test_util


@mock.patch("brewhttpd.util.subprocess.run")
class RunScriptTest(unittest.TestCase):
    """Tests for brewhttpd.util.run_script."""

    def test_returns_output(self, mock_run):
        mock_run.return_value = mock.MagicMock(returncode=0, stdout="8.4.1", stderr="")
        assert util.run_script(["php", "-r", "echo PHP_VERSION;"]) == ("8.4.1", "")

    def test_feeds_stdin(self, mock_run):
        mock_run.return_value.returncode = 0
        util.run_script(["sudo", "tee", "/etc/hosts"], stdin_data="127.0.0.1 localhost\n")
        assert mock_run.call_args[0][0] == ["sudo", "tee", "/etc/hosts"]
        assert mock_run.call_args[1]["input"] == "127.0.0.1 localhost\n"

    def test_cannot_start(self, mock_run):
        mock_run.side_effect = FileNotFoundError(errno.ENOENT, "brew")
        with pytest.raises(errors.SubprocessError, match="Could not start brew"):
            util.run_script(["brew", "--prefix"])

    def test_nonzero_exit(self, mock_run):
        mock_run.return_value = mock.MagicMock(
            returncode=1, stdout="", stderr="Syntax error on line 3")
        on_error = mock.MagicMock()
        with pytest.raises(errors.SubprocessError, match="Syntax error on line 3"):
            util.run_script(["apachectl", "configtest"], log=on_error)
        assert "exited with status 1" in on_error.call_args[0][0]


@mock.patch("brewhttpd.util.subprocess.check_call")
class RunAttachedTest(unittest.TestCase):
    """Tests for brewhttpd.util.run_attached."""

    def test_output_not_captured(self, mock_call):
        util.run_attached(["/bin/bash", "-c", "read -r answer"])
        mock_call.assert_called_once_with(["/bin/bash", "-c", "read -r answer"])

    def test_nonzero_exit(self, mock_call):
        mock_call.side_effect = subprocess.CalledProcessError(1, ["brew", "update"])
        with pytest.raises(errors.SubprocessError, match="brew update exited with status 1"):
            util.run_attached(["brew", "update"])

    def test_cannot_start(self, mock_call):
        mock_call.side_effect = FileNotFoundError(errno.ENOENT, "brew")
        with pytest.raises(errors.SubprocessError, match="Could not start brew"):
            util.run_attached(["brew", "update"])


class ExeExistsTest(unittest.TestCase):
    """Tests for brewhttpd.util.exe_exists."""

    @classmethod
    def _call(cls, exe):
        from brewhttpd.util import exe_exists
        return exe_exists(exe)

    def test_exe_exists(self):
        with mock.patch("brewhttpd.util.is_executable", return_value=True):
            assert self._call("/path/to/exe")

    def test_exe_not_exists(self):
        with mock.patch("brewhttpd.util.is_executable", return_value=False):
            assert not self._call("/path/to/exe")

    def test_exe_on_path(self):
        with mock.patch.dict(os.environ, {"PATH": os.pathsep.join(["/a", "/b"])}):
            with mock.patch("brewhttpd.util.is_executable",
                            side_effect=lambda path: path == "/b/brew"):
                assert self._call("brew")
                assert not self._call("httpd")


class MakeOrVerifyDirTest(test_util.TempDirTestCase):
    """Tests for brewhttpd.util.make_or_verify_dir."""

    def setUp(self):
        super().setUp()

        self.path = os.path.join(self.tempdir, "foo")
        os.mkdir(self.path, 0o600)
        os.chmod(self.path, 0o600)

    def _call(self, directory, mode, strict=False):
        from brewhttpd.util import make_or_verify_dir
        return make_or_verify_dir(directory, mode, strict)

    def test_creates_dir_when_missing(self):
        path = os.path.join(self.tempdir, "bar")
        self._call(path, 0o650)
        assert os.path.isdir(path)

    def test_existing_correct_mode_does_not_fail(self):
        self._call(self.path, 0o600, strict=True)

    def test_existing_wrong_mode_fails_when_strict(self):
        with pytest.raises(errors.Error):
            self._call(self.path, 0o400, strict=True)

    def test_existing_wrong_mode_ignored_when_not_strict(self):
        self._call(self.path, 0o400)

    def test_reraises_os_error(self):
        with mock.patch("brewhttpd.util.os.makedirs") as makedirs:
            makedirs.side_effect = OSError(errno.EACCES, "denied")
            with pytest.raises(OSError):
                self._call("bar", 12312312)


class SetUpCoreDirTest(test_util.TempDirTestCase):
    """Tests for brewhttpd.util.set_up_core_dir."""

    def test_success(self):
        from brewhttpd.util import set_up_core_dir
        path = os.path.join(self.tempdir, "core")
        set_up_core_dir(path, 0o700, False)
        assert os.path.isdir(path)

    def test_failure(self):
        from brewhttpd.util import set_up_core_dir
        with mock.patch("brewhttpd.util.make_or_verify_dir") as mock_make:
            mock_make.side_effect = OSError(errno.EACCES, "denied")
            with pytest.raises(errors.Error):
                set_up_core_dir(self.tempdir, 0o700, False)


class SafeOpenTest(test_util.TempDirTestCase):
    """Tests for brewhttpd.util.safe_open."""

    def setUp(self):
        super().setUp()
        self.path = os.path.join(self.tempdir, "foo")

    def _call(self, mode=0o600):
        from brewhttpd.util import safe_open
        return safe_open(self.path, chmod=mode)

    def test_safe_open_creates_file(self):
        with self._call(0o600) as fd:
            fd.write("bar")
        assert stat.S_IMODE(os.stat(self.path).st_mode) & 0o077 == 0
        with open(self.path) as f:
            assert f.read() == "bar"

    def test_safe_open_exists(self):
        with self._call():
            pass
        with pytest.raises(OSError):
            self._call()


class WriteFileTest(test_util.TempDirTestCase):
    """Tests for brewhttpd.util.write_file."""

    def test_replaces_and_chmods(self):
        from brewhttpd.util import write_file
        path = os.path.join(self.tempdir, "index.html")
        write_file(path, "old")
        write_file(path, "new", chmod=0o644)
        with open(path) as f:
            assert f.read() == "new"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


class SafelyRemoveTest(test_util.TempDirTestCase):
    """Tests for brewhttpd.util.safely_remove."""

    def setUp(self):
        super().setUp()
        self.path = os.path.join(self.tempdir, "httpd.conf.bak")

    def test_removes_file(self):
        open(self.path, "w").close()
        util.safely_remove(self.path)
        assert not os.path.exists(self.path)

    def test_missing_file_ignored(self):
        util.safely_remove(self.path)

    @mock.patch("brewhttpd.util.os.remove")
    def test_permission_error_raised(self, mock_remove):
        mock_remove.side_effect = PermissionError(errno.EPERM, "not permitted")
        with pytest.raises(PermissionError):
            util.safely_remove(self.path)


class IsMacosTest(unittest.TestCase):
    """Tests for brewhttpd.util.is_macos."""

    @mock.patch("brewhttpd.util.platform.system")
    def test_darwin(self, mock_system):
        mock_system.return_value = "Darwin"
        assert util.is_macos()
        mock_system.return_value = "Linux"
        assert not util.is_macos()


class AtexitRegisterTest(unittest.TestCase):
    """Tests for brewhttpd.util.atexit_register."""

    def _registered(self, func, pid):
        """Register func as if brewhttpd had been imported by pid, return the hook."""
        with mock.patch("brewhttpd.util.atexit") as mock_atexit:
            util.atexit_register(func, "logs", keep=True)
        hook, *args = mock_atexit.register.call_args[0]
        kwargs = mock_atexit.register.call_args[1]
        with mock.patch("brewhttpd.util._INITIAL_PID", pid):
            hook(*args, **kwargs)

    def test_runs_in_importing_process(self):
        func = mock.MagicMock()
        self._registered(func, os.getpid())
        func.assert_called_once_with("logs", keep=True)

    def test_skipped_in_child(self):
        func = mock.MagicMock()
        self._registered(func, os.getpid() + 1)
        func.assert_not_called()


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
