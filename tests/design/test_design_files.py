
import os

from hamcrest import (assert_that, calling, contains_exactly, has_length, is_,
        raises)

from couchdesign import design
from couchdesign.env import CONFIG
from couchdesign.errors import MalformedJSONError
from couchdesign.util.test import DirPerTest, fixture_path

import couchdesign.data as data


class DesignFileTests(DirPerTest):

    def test_from_file(self):
        ddoc = design.from_file(fixture_path("design-files", "views101_design_doc.js"))
        assert_that(ddoc.id, is_("_design/views101"))
        assert_that(sorted(ddoc.views),
                contains_exactly("diet_sum", "latin_name", "latin_name_jssum"))

    def test_from_fixture_directory(self):
        ddocs = design.from_directory(fixture_path("design-files"))
        assert_that([d.id for d in ddocs],
                contains_exactly("_design/example", "_design/views101"))

    def test_from_directory_single_file(self):
        path = self.write("one.json", data.search_ddoc())
        ddocs = design.from_directory(path)
        assert_that(ddocs, has_length(1))
        assert_that(ddocs[0].id, is_("_design/search"))

    def test_from_directory_recurses(self):
        self.write("b/bar.js", data.simple_map_red_ddoc())
        self.write("a/search.json", data.search_ddoc())
        self.write("a/notes.txt", "not a design document")
        ddocs = design.from_directory(self.dir)
        assert_that([d.id for d in ddocs],
                contains_exactly("_design/search", "_design/foo"))

    def test_custom_extensions(self):
        self.write("foo.ddoc", data.simple_map_red_ddoc())
        self.write("search.json", data.search_ddoc())
        ddocs = design.from_directory(self.dir, extensions=(".ddoc",))
        assert_that([d.id for d in ddocs], contains_exactly("_design/foo"))

    def test_invalid_file(self):
        self.write("bad.json", '{"_id": "_design/bad", "views": []}')
        assert_that(calling(design.from_directory).with_args(self.dir),
                raises(MalformedJSONError))

    def test_iter_files_sorted(self):
        for name in ("c.js", "a.js", "b.json"):
            self.write(name, data.search_ddoc())
        names = [os.path.basename(f) for f in design.iter_files(self.dir)]
        assert_that(names, contains_exactly("a.js", "b.json", "c.js"))

    def test_default_extensions(self):
        assert_that(CONFIG.extensions, contains_exactly(".js", ".json"))

    def test_invalid_utf8_file(self):
        path = self.write("bad.json", b'{"_id": "_design/\xff"}')
        assert_that(calling(design.from_file).with_args(path),
                raises(MalformedJSONError))

    def test_fixture_dir_can_be_replaced(self):
        self.write("mine.json", data.search_ddoc())
        self.FIXTURE_DIR = self.dir
        assert_that(self.fixture("mine.json"), is_(data.search_ddoc()))
        assert_that(fixture_path("mine.json", dirname=self.dir),
                is_(os.path.join(self.dir, "mine.json")))
