"""\
unittest helpers for descriptor tests.

FIXTURE_DIR defaults to the tests/fixtures directory of a source checkout.
Installed copies have no such directory; point a FixtureTest subclass (or
the dirname argument of the fixture functions) at your own fixtures.
"""

import os
import shutil
import tempfile
import unittest

from couchdesign import codec


FIXTURE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "tests",
    "fixtures"
)


def fixture_path(*parts, dirname=None):
    return os.path.join(dirname or FIXTURE_DIR, *parts)


def read_fixture(*parts, dirname=None):
    with open(fixture_path(*parts, dirname=dirname), encoding="utf-8") as f:
        return f.read()


def load_fixture(*parts, dirname=None):
    return codec.loads(read_fixture(*parts, dirname=dirname))


class FixtureTest(unittest.TestCase):

    FIXTURE_DIR = FIXTURE_DIR

    def fixture(self, *parts):
        return load_fixture(*parts, dirname=self.FIXTURE_DIR)

    def fixture_text(self, *parts):
        return read_fixture(*parts, dirname=self.FIXTURE_DIR)


class DirPerTest(FixtureTest):
    """Gives every test a scratch directory for descriptor files."""

    def setUp(self):
        self.dir = tempfile.mkdtemp(prefix="couchdesign_")

    def tearDown(self):
        shutil.rmtree(self.dir, ignore_errors=True)

    def write(self, relpath, obj):
        path = os.path.join(self.dir, relpath)
        dname = os.path.dirname(path)
        if not os.path.isdir(dname):
            os.makedirs(dname)
        if isinstance(obj, bytes):
            with open(path, "wb") as f:
                f.write(obj)
            return path
        if not isinstance(obj, str):
            obj = codec.dumps(obj, indent=2)
        with open(path, "w", encoding="utf-8") as f:
            f.write(obj)
        return path
