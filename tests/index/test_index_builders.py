
import json

from hamcrest import (assert_that, calling, equal_to, has_entries, has_key, is_,
        is_not, none, raises)

from couchdesign.errors import DuplicateNameError, MalformedJSONError
from couchdesign.index import IndexDefinition, JsonIndexBuilder, TextIndexBuilder
from couchdesign.util.matchers import has_field_order
from couchdesign.util.test import FixtureTest


class JsonIndexBuilderTests(FixtureTest):

    def test_build_complex_json(self):
        idx = JsonIndexBuilder() \
            .name("complexjson") \
            .design_document("_design/testindexddoc") \
            .partial_filter_selector('{"year": {"$gt": 2010}}') \
            .asc("Person_name") \
            .desc("Movie_year") \
            .build()
        expect = self.fixture("query-tests", "index_json_complex.js")
        assert_that(idx, equal_to(IndexDefinition.from_json(expect)))
        assert_that(idx, has_field_order("Person_name:asc", "Movie_year:desc"))

    def test_definition_is_create_payload(self):
        text = JsonIndexBuilder().name("byname").asc("name").definition()
        assert_that(json.loads(text), is_({
            "name": "byname",
            "type": "json",
            "index": {"fields": [{"name": "asc"}]}
        }))

    def test_bare_fields(self):
        idx = JsonIndexBuilder().fields("a", "b").build()
        assert_that(idx.field_order, is_([("a", None), ("b", None)]))

    def test_needs_a_field(self):
        assert_that(calling(JsonIndexBuilder().name("x").build),
                raises(MalformedJSONError))

    def test_duplicate_field(self):
        builder = JsonIndexBuilder().asc("a")
        assert_that(calling(builder.desc).with_args("a"),
                raises(DuplicateNameError))

    def test_partitioned(self):
        idx = JsonIndexBuilder().asc("a").partitioned().build()
        assert_that(idx.to_json(), has_entries(partitioned=True))


class TextIndexBuilderTests(FixtureTest):

    def test_build_complex_text(self):
        idx = TextIndexBuilder() \
            .name("complextext") \
            .design_document("_design/testindexddoc") \
            .analyzer({
                "name": "perfield",
                "default": "english",
                "fields": {"spanish": "spanish", "german": "german"}
            }) \
            .default_field(True, "spanish") \
            .partial_filter_selector({"year": {"$gt": 2010}}) \
            .string("Movie_name") \
            .number("Movie_runtime") \
            .boolean("Movie_wonaward") \
            .index_array_lengths(True) \
            .build()
        expect = self.fixture("query-tests", "index_text_complex.js")
        assert_that(idx.to_json(), is_(expect))

    def test_all_fields(self):
        idx = TextIndexBuilder().name("everything").build()
        assert_that(idx.fields, none())
        assert_that(idx.to_json()["def"], is_not(has_key("fields")))

    def test_default_field_without_analyzer(self):
        idx = TextIndexBuilder().default_field(False).build()
        assert_that(dict(idx.definition.default_field), is_({"enabled": False}))

    def test_field_order_across_types(self):
        idx = TextIndexBuilder().number("b").string("a").boolean("c").build()
        assert_that(idx, has_field_order("b:number", "a:string", "c:boolean"))


class TextIndexCreateRequestTests(FixtureTest):

    SELECTOR = {"year": {"$gt": 2010}}
    ANALYZER = '{"name": "perfield", "default": "english", ' \
            '"fields": {"spanish": "spanish", "german": "german"}}'

    def payload(self, builder):
        return json.loads(builder.definition())

    def test_empty(self):
        assert_that(self.payload(TextIndexBuilder()),
                is_({"type": "text", "index": {}}))

    def test_fields_are_spelled_out(self):
        builder = TextIndexBuilder().string("s").boolean("b").number("n")
        assert_that(self.payload(builder), is_({
            "type": "text",
            "index": {
                "fields": [
                    {"name": "s", "type": "string"},
                    {"name": "b", "type": "boolean"},
                    {"name": "n", "type": "number"}
                ]
            }
        }))

    def test_string_analyzer(self):
        builder = TextIndexBuilder().analyzer("keyword")
        assert_that(self.payload(builder),
                is_({"type": "text", "index": {"analyzer": "keyword"}}))

    def test_analyzer_as_json_text(self):
        builder = TextIndexBuilder().analyzer(self.ANALYZER)
        assert_that(self.payload(builder), is_({
            "type": "text",
            "index": {"analyzer": json.loads(self.ANALYZER)}
        }))

    def test_analyzer_json_text_must_be_valid(self):
        assert_that(calling(TextIndexBuilder().analyzer).with_args("{name"),
                raises(MalformedJSONError))

    def test_default_field(self):
        builder = TextIndexBuilder().default_field(True, "german")
        assert_that(self.payload(builder), is_({
            "type": "text",
            "index": {"default_field": {"enabled": True, "analyzer": "german"}}
        }))

    def test_index_array_lengths(self):
        builder = TextIndexBuilder().index_array_lengths(False)
        assert_that(self.payload(builder), is_({
            "type": "text",
            "index": {"index_array_lengths": False}
        }))

    def test_all_options(self):
        builder = TextIndexBuilder() \
            .name("testindex") \
            .design_document("testddoc") \
            .string("s") \
            .boolean("b") \
            .number("n") \
            .default_field(True, "german") \
            .analyzer("keyword") \
            .partial_filter_selector(self.SELECTOR) \
            .index_array_lengths(False)
        assert_that(self.payload(builder), is_({
            "type": "text",
            "name": "testindex",
            "ddoc": "testddoc",
            "index": {
                "fields": [
                    {"name": "s", "type": "string"},
                    {"name": "b", "type": "boolean"},
                    {"name": "n", "type": "number"}
                ],
                "default_field": {"enabled": True, "analyzer": "german"},
                "analyzer": "keyword",
                "partial_filter_selector": self.SELECTOR,
                "index_array_lengths": False
            }
        }))

    def test_create_request_parses_back(self):
        idx = TextIndexBuilder() \
            .name("testindex") \
            .analyzer("keyword") \
            .string("s") \
            .number("n") \
            .build()
        parsed = IndexDefinition.loads(json.dumps(idx.to_create_payload()))
        assert_that(parsed, equal_to(idx))
        assert_that(parsed, has_field_order("s:string", "n:number"))
        assert_that(parsed.to_json()["def"], has_entries(
            default_analyzer="keyword",
            fields=[{"s": "string"}, {"n": "number"}]
        ))
