"""Logging for brewhttpd.

Logging is configured in two phases around argument parsing:

1. `pre_arg_parse_setup` runs first. Records go to stderr only at ERROR
   and above, and every record is buffered in memory. If brewhttpd dies
   before phase 2, the buffer ends up in a private temporary file.
2. `post_arg_parse_setup` runs once the command line is known. It moves the
   buffer into ``brewhttpd.log`` under ``--logs-dir`` (rotated on each run)
   and lowers the stderr level according to ``-v``/``-q``.

Both phases install a `sys.excepthook` that turns an `errors.Error` into a
single red ``✗`` line and exit status 1. Anything else also exits 1, with
the traceback kept in the debug log.

Progress meant for the user is written with `brewhttpd.display.util`;
`logging` records what brewhttpd runs and rewrites.

"""
import functools
import logging
import logging.handlers
import os
import platform
import shutil
import sys
import tempfile
import traceback
from types import TracebackType
from typing import Any
from typing import IO
from typing import Optional
from typing import Tuple
from typing import Type

from brewhttpd import configuration
from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants
from brewhttpd.display import util as display_util

CLI_FMT = "%(message)s"
FILE_FMT = "%(asctime)s:%(levelname)s:%(name)s:%(message)s"
LOG_FILENAME = "brewhttpd.log"

# 1 MiB; a single run never comes close, rotation happens at startup
MAX_LOG_BYTES = 2 ** 20

logger = logging.getLogger(__name__)


def pre_arg_parse_setup() -> None:
    """Install the stderr handler, the in-memory buffer and the except hook."""
    temp_handler = TempHandler()
    temp_handler.setFormatter(logging.Formatter(FILE_FMT))
    temp_handler.setLevel(logging.DEBUG)
    memory_handler = MemoryHandler(temp_handler)

    stream_handler = ColoredStreamHandler()
    stream_handler.setFormatter(logging.Formatter(CLI_FMT))
    stream_handler.setLevel(constants.QUIET_LOGGING_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(memory_handler)
    root_logger.addHandler(stream_handler)

    # logging.shutdown flushes and closes every handler on exit
    util.atexit_register(logging.shutdown)
    sys.excepthook = functools.partial(
        pre_arg_parse_except_hook, memory_handler,
        debug="--debug" in sys.argv,
        quiet="--quiet" in sys.argv or "-q" in sys.argv,
        log_path=temp_handler.path)


def post_arg_parse_setup(config: configuration.NamespaceConfig) -> None:
    """Switch the buffered records over to the rotating log file.

    :param brewhttpd.configuration.NamespaceConfig config: parsed options

    :raises .errors.Error: if the log file cannot be created

    """
    root_logger = logging.getLogger()
    memory_handler = _find_handler(root_logger, MemoryHandler)
    stream_handler = _find_handler(root_logger, ColoredStreamHandler)
    if memory_handler is None or stream_handler is None:
        raise errors.Error("pre_arg_parse_setup must run before post_arg_parse_setup")

    file_handler, file_path = setup_log_file_handler(config, LOG_FILENAME, FILE_FMT)

    root_logger.addHandler(file_handler)
    root_logger.removeHandler(memory_handler)
    temp_handler = memory_handler.target
    memory_handler.setTarget(file_handler)
    memory_handler.flush(force=True)
    memory_handler.close()
    if temp_handler is not None:
        temp_handler.close()

    level = stderr_level(config)
    stream_handler.setLevel(level)
    logger.debug("stderr logging level set to %d", level)

    # Homebrew lives in /opt/homebrew on Apple silicon and /usr/local on Intel
    logger.debug("macOS %s on %s", platform.mac_ver()[0] or "unknown", platform.machine())

    if not config.quiet:
        display_util.notify("Saving debug log to {0}".format(file_path), sys.stderr)

    sys.excepthook = functools.partial(
        post_arg_parse_except_hook,
        debug=config.debug, quiet=config.quiet, log_path=file_path)


def stderr_level(config: configuration.NamespaceConfig) -> int:
    """Level of the stderr handler for the parsed options.

    ``-q`` wins, then ``--verbose-level``, then one step down from WARNING
    per ``-v``.

    """
    if config.quiet:
        return constants.QUIET_LOGGING_LEVEL
    steps = config.verbose_count
    if config.verbose_level is not None:
        steps = int(config.verbose_level)
    return constants.DEFAULT_LOGGING_LEVEL - 10 * steps


def _find_handler(root_logger: logging.Logger, kind: Type[logging.Handler]
                  ) -> Optional[Any]:
    for handler in root_logger.handlers:
        if isinstance(handler, kind):
            return handler
    return None


def setup_log_file_handler(config: configuration.NamespaceConfig, logfile: str,
                           fmt: str) -> Tuple[logging.Handler, str]:
    """Create the rotating debug log in ``config.logs_dir``.

    The previous log is rotated away on every call, keeping at most
    ``config.max_log_backups`` old logs. With 0 backups the same file is
    appended to forever.

    :returns: the handler and the absolute path of the log file
    :rtype: tuple

    :raises .errors.Error: if the directory or the file cannot be created

    """
    util.set_up_core_dir(config.logs_dir, 0o700, config.strict_permissions)
    log_path = os.path.join(config.logs_dir, logfile)
    try:
        handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=MAX_LOG_BYTES, backupCount=config.max_log_backups)
    except IOError as error:
        raise errors.Error(util.PERM_ERR_FMT.format(error))
    handler.doRollover()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=fmt))
    return handler, log_path


class ColoredStreamHandler(logging.StreamHandler):
    """Stream handler painting records at or above `red_level` in red.

    Colour is used only when the stream is a terminal.

    :ivar bool colored: whether the stream is a terminal
    :ivar int red_level: lowest level printed in red, WARNING by default

    """
    def __init__(self, stream: Optional[IO] = None) -> None:
        super().__init__(stream)
        self.colored = self.stream.isatty()
        self.red_level = logging.WARNING

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.colored or record.levelno < self.red_level:
            return text
        return util.ANSI_SGR_RED + text + util.ANSI_SGR_RESET


class MemoryHandler(logging.handlers.MemoryHandler):
    """Holds every record until ``flush(force=True)``.

    Plain `flush` calls, including the one made by `logging.shutdown`, do
    nothing, and the target survives `close`.

    """
    def __init__(self, target: Optional[logging.Handler] = None,
                 capacity: int = 10000) -> None:
        super().__init__(capacity, target=target)

    def close(self) -> None:
        target = self.target
        super().close()
        self.target = target

    def flush(self, force: bool = False) -> None:  # pylint: disable=arguments-differ
        if force:
            super().flush()

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        return False


class TempHandler(logging.StreamHandler):
    """Writes records to a new 0600 file in a private temporary directory.

    The directory is removed on `close` unless something was logged.

    :ivar str path: the temporary log file

    """
    def __init__(self) -> None:
        self._workdir = tempfile.mkdtemp(prefix="brewhttpd_log")
        self.path = os.path.join(self._workdir, "log")
        super().__init__(util.safe_open(self.path, mode="w", chmod=0o600))
        self.stream: IO[str]
        self._used = False

    def emit(self, record: logging.LogRecord) -> None:
        self._used = True
        super().emit(record)

    def close(self) -> None:
        with self.lock:
            self.stream.close()
            if not self._used and os.path.isdir(self._workdir):
                shutil.rmtree(self._workdir)
            super().close()


def pre_arg_parse_except_hook(memory_handler: MemoryHandler,
                              *args: Any, **kwargs: Any) -> None:
    """`post_arg_parse_except_hook`, then write out the buffered records.

    :param MemoryHandler memory_handler: buffer to flush to its target
    :param args: positional arguments of `post_arg_parse_except_hook`
    :param kwargs: keyword arguments of `post_arg_parse_except_hook`

    """
    try:
        post_arg_parse_except_hook(*args, **kwargs)
    finally:
        memory_handler.flush(force=True)


def post_arg_parse_except_hook(exc_type: Type[BaseException], exc_value: BaseException,
                               trace: TracebackType, debug: bool, quiet: bool,
                               log_path: str) -> None:
    """Report an uncaught exception and exit with status 1.

    - `KeyboardInterrupt` says so and exits.
    - With ``--debug``, and for exceptions that are not `Exception`
      subclasses, the traceback goes to stderr.
    - An `errors.Error` prints ``✗ <message>``.
    - Any other exception prints its one-line summary.

    Unless ``--quiet`` is given, the exit message points at the debug log.

    """
    exc_info = (exc_type, exc_value, trace)
    if exc_type is KeyboardInterrupt:
        logger.error("Exiting due to user request.")
        sys.exit(1)

    if debug or not issubclass(exc_type, Exception):
        logger.error("Exiting abnormally:", exc_info=exc_info)
    else:
        logger.debug("Exiting abnormally:", exc_info=exc_info)
        if issubclass(exc_type, errors.Error):
            logger.error("✗ %s", exc_value)
        else:
            logger.error("An unexpected error occurred:")
            summary = traceback.format_exception_only(exc_type, exc_value)
            logger.error("".join(summary).rstrip())

    if quiet:
        sys.exit(1)
    exit_with_advice(log_path)


def exit_with_advice(log_path: str) -> None:
    """Exit with status 1 and a pointer to the debug log.

    :param str log_path: log file, or directory of log files

    """
    if os.path.isdir(log_path):
        where = "logfiles in {0}".format(log_path)
    else:
        where = "logfile {0}".format(log_path)
    sys.exit("See the {0} or re-run brewhttpd with -v for more details.".format(where))
