"""Line oriented, idempotent edits of Apache configuration files.

Apache configuration is treated as plain text. Every edit is written so
that applying it twice leaves the file as applying it once did: lines are
deleted before being appended again, replaced in place, or appended only
when a marker line is missing.

"""
import logging
import os
import re
import shutil
from typing import List
from typing import Optional
from typing import Pattern
from typing import Union

from brewhttpd import errors
from brewhttpd._internal import constants
from brewhttpd._internal import sudo

logger = logging.getLogger(__name__)

PatternLike = Union[str, Pattern[str]]


def _compile(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


class ConfigFile:
    """An Apache configuration file loaded in memory.

    Edits only touch the in-memory lines; `save` writes them back if
    anything changed.

    Lines are split on line feeds only and the file is read without newline
    translation, so an unedited file is written back unchanged, carriage
    returns included.

    :ivar str path: file system path of the configuration file
    :ivar list lines: current lines, without their line feeds

    """
    def __init__(self, path: str, text: str = "") -> None:
        self.path = path
        self._original = text
        self._final_newline = text.endswith("\n")
        self.lines: List[str] = text.split("\n") if text else []
        if self._final_newline:
            self.lines.pop()

    @classmethod
    def load(cls, path: str) -> "ConfigFile":
        """Read path into a new `ConfigFile`.

        :raises .errors.NoInstallationError: if path does not exist

        """
        try:
            with open(path, newline="") as f:
                return cls(path, f.read())
        except FileNotFoundError:
            raise errors.NoInstallationError(
                "Apache configuration file not found: {0}".format(path))

    @property
    def text(self) -> str:
        """Current contents of the file."""
        if not self.lines:
            return ""
        return "\n".join(self.lines) + ("\n" if self._final_newline else "")

    @property
    def changed(self) -> bool:
        return self.text != self._original

    def contains(self, pattern: PatternLike) -> bool:
        """Does any line match the regular expression pattern?"""
        regex = _compile(pattern)
        return any(regex.search(line) for line in self.lines)

    def find(self, pattern: PatternLike) -> Optional[re.Match]:
        """First match of pattern among the lines, if any."""
        regex = _compile(pattern)
        for line in self.lines:
            match = regex.search(line)
            if match:
                return match
        return None

    def delete_lines(self, pattern: PatternLike) -> int:
        """Delete every line matching pattern.

        :returns: number of deleted lines
        :rtype: int

        """
        regex = _compile(pattern)
        kept = [line for line in self.lines if not regex.search(line)]
        deleted = len(self.lines) - len(kept)
        self.lines = kept
        return deleted

    def append(self, text: str) -> None:
        """Append the lines of text at the end of the file."""
        self.lines.extend(text.splitlines())
        self._final_newline = True

    def replace_line(self, pattern: PatternLike, line: str) -> int:
        """Replace every line matching pattern with line.

        :returns: number of replaced lines
        :rtype: int

        """
        regex = _compile(pattern)
        count = 0
        for i, current in enumerate(self.lines):
            if regex.search(current):
                self.lines[i] = line
                count += 1
        return count

    def replace_or_append(self, pattern: PatternLike, line: str) -> bool:
        """Replace lines matching pattern with line, or append line.

        :returns: True if an existing line was replaced
        :rtype: bool

        """
        if self.replace_line(pattern, line):
            return True
        self.append(line)
        return False

    def sub(self, pattern: PatternLike, repl: str) -> int:
        """Apply a regular expression substitution to each line.

        :returns: number of lines that changed
        :rtype: int

        """
        regex = _compile(pattern)
        count = 0
        for i, current in enumerate(self.lines):
            new = regex.sub(repl, current)
            if new != current:
                self.lines[i] = new
                count += 1
        return count

    def substitute(self, old: str, new: str) -> int:
        """Replace the literal string old with new on each line."""
        return self.sub(re.escape(old), new.replace("\\", "\\\\"))

    def uncomment(self, prefix: str) -> int:
        """Uncomment lines reading ``#<prefix>...``.

        Indentation is kept and nothing but the comment sign is removed.

        :returns: number of uncommented lines
        :rtype: int

        """
        regex = re.compile(r"^(\s*)#" + re.escape(prefix))
        return self.sub(regex, r"\g<1>" + prefix.replace("\\", "\\\\"))

    def comment_block(self, start: PatternLike, end: PatternLike) -> int:
        """Comment out every line from an uncommented start through end.

        Blocks that are already commented are left alone, so running this
        again after a first pass changes nothing.

        :returns: number of lines commented
        :rtype: int

        """
        start_re = _compile(start)
        end_re = _compile(end)
        count = 0
        in_block = False
        for i, line in enumerate(self.lines):
            if not in_block:
                if _is_comment(line) or not start_re.search(line):
                    continue
                in_block = True
            if not _is_comment(line):
                self.lines[i] = "#" + line
                count += 1
            if end_re.search(line):
                in_block = False
        return count

    def ensure_block(self, marker: str, text: str) -> bool:
        """Append text unless a line equal to marker is already present.

        :returns: True if text was appended
        :rtype: bool

        """
        if any(line.strip() == marker for line in self.lines):
            return False
        self.append(text)
        return True

    def backup(self, suffix: str = constants.BACKUP_SUFFIX) -> Optional[str]:
        """Copy the file on disk to path + suffix unless that copy exists.

        :returns: path of the backup, or ``None`` if it already existed
        :rtype: str or None

        """
        backup_path = self.path + suffix
        if os.path.exists(backup_path):
            logger.debug("Keeping existing backup %s", backup_path)
            return None
        logger.debug("Creating backup of %s", self.path)
        try:
            shutil.copy2(self.path, backup_path)
        except PermissionError:
            sudo.run(["cp", "-p", self.path, backup_path])
        return backup_path

    def save(self) -> bool:
        """Write the file back if it changed.

        :returns: True if the file was written
        :rtype: bool

        """
        if not self.changed:
            logger.debug("%s is unchanged", self.path)
            return False
        logger.debug("Writing %s", self.path)
        sudo.write_file(self.path, self.text)
        self._original = self.text
        return True
