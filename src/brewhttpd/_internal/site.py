"""Document root and the test pages served from it."""
import logging
import os
from typing import List

from brewhttpd import util
from brewhttpd._internal.apache import templates

logger = logging.getLogger(__name__)

REWRITE_TEST_DIR = "rewrite-test"


def prepare_document_root(document_root: str) -> str:
    """Create document_root (0755) with an ``index.html`` (0644).

    :returns: path of the index page
    :rtype: str

    """
    util.make_or_verify_dir(document_root, 0o755)
    os.chmod(document_root, 0o755)
    index = os.path.join(document_root, "index.html")
    util.write_file(index, templates.INDEX_HTML, chmod=0o644)
    return index


def write_phpinfo(document_root: str) -> str:
    """Write ``phpinfo.php`` into document_root."""
    path = os.path.join(document_root, "phpinfo.php")
    util.write_file(path, templates.PHPINFO_PHP)
    return path


def write_rewrite_test(document_root: str) -> List[str]:
    """Write the mod_rewrite test page and its ``.htaccess`` (both 0644).

    ``/rewrite-test/`` and ``/rewrite-test/test`` are both rewritten to
    ``success.html`` once mod_rewrite and ``AllowOverride All`` work.

    :returns: paths of the written files
    :rtype: list

    """
    test_dir = os.path.join(document_root, REWRITE_TEST_DIR)
    util.make_or_verify_dir(test_dir, 0o755)
    success = os.path.join(test_dir, "success.html")
    htaccess = os.path.join(test_dir, ".htaccess")
    util.write_file(success, templates.REWRITE_SUCCESS_HTML, chmod=0o644)
    util.write_file(htaccess, templates.REWRITE_HTACCESS, chmod=0o644)
    logger.debug("Rewrite test files written to %s", test_dir)
    return [success, htaccess]
