"""\
Query (Mango) index definitions.

An index definition names its owning design document, its own name, its
type and a type specific definition. The two definition shapes are kept
apart: json indexes sort their fields ("asc"/"desc"), text indexes type
them ("string"/"number"/"boolean") and take a few analyzer options.

Listing indexes sends the definition as "def" while creating one expects
it under "index"; both are read, and to_create_payload() writes the
latter. Text indexes differ between the two: a create request spells its
fields out as {"name": ..., "type": ...} and names the analyzer
"analyzer" rather than "default_analyzer".
"""

import logging

from couchdesign import codec
from couchdesign.errors import (DuplicateNameError, FieldShapeError,
        MalformedJSONError, UnknownIndexTypeError)
from couchdesign.value import Immutable, freeze_map, thaw


log = logging.getLogger(__name__)


JSON = "json"
TEXT = "text"
SPECIAL = "special"
INDEX_TYPES = (JSON, TEXT)

ASC = "asc"
DESC = "desc"
SORT_ORDERS = (ASC, DESC)

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
TEXT_TYPES = (STRING, NUMBER, BOOLEAN)

LISTING_KEY = "def"
CREATE_KEY = "index"


def _single_entry(obj, member):
    if not isinstance(obj, dict) or len(obj) != 1:
        msg = "'%s' must be an object with exactly one member" % member
        raise MalformedJSONError(msg, member=member)
    (name, value), = obj.items()
    return name, value


def _is_spelled_out(obj):
    return isinstance(obj, dict) and sorted(obj) == ["name", "type"]


class JsonField(Immutable):

    FIELDS = ("name", "order")

    def __init__(self, name, order=None):
        if order is not None and order not in SORT_ORDERS:
            fmt = "Invalid sort order for json index field '%s': %r"
            raise FieldShapeError(fmt % (name, order), member=name)
        self._set("name", name)
        self._set("order", order)

    @classmethod
    def asc(klass, name):
        return klass(name, ASC)

    @classmethod
    def desc(klass, name):
        return klass(name, DESC)

    @classmethod
    def from_json(klass, obj, member="fields"):
        if isinstance(obj, str):
            return klass(obj)
        name, order = _single_entry(obj, member)
        if order in TEXT_TYPES:
            fmt = "json index field '%s' uses text field type %r"
            raise FieldShapeError(fmt % (name, order), member=member)
        if order not in SORT_ORDERS:
            fmt = "json index field '%s' has invalid sort order %r"
            raise FieldShapeError(fmt % (name, order), member=member)
        return klass(name, order)

    def to_json(self, def_key=LISTING_KEY):
        if self.order is None:
            return self.name
        return {self.name: self.order}

    def __str__(self):
        if self.order is None:
            return self.name
        return "%s:%s" % (self.name, self.order)


class TextField(Immutable):

    FIELDS = ("name", "type")

    def __init__(self, name, type):
        if type not in TEXT_TYPES:
            fmt = "Invalid type for text index field '%s': %r"
            raise FieldShapeError(fmt % (name, type), member=name)
        self._set("name", name)
        self._set("type", type)

    @classmethod
    def from_json(klass, obj, member="fields"):
        if isinstance(obj, str):
            fmt = "text index field '%s' has no type"
            raise FieldShapeError(fmt % obj, member=member)
        if _is_spelled_out(obj):
            name = codec.expect_string(obj["name"], member + ".name")
            type_ = obj["type"]
        else:
            name, type_ = _single_entry(obj, member)
        if type_ in SORT_ORDERS:
            fmt = "text index field '%s' uses json sort order %r"
            raise FieldShapeError(fmt % (name, type_), member=member)
        if type_ not in TEXT_TYPES:
            fmt = "text index field '%s' has invalid type %r"
            raise FieldShapeError(fmt % (name, type_), member=member)
        return klass(name, type_)

    def to_json(self, def_key=LISTING_KEY):
        if def_key == CREATE_KEY:
            return {"name": self.name, "type": self.type}
        return {self.name: self.type}

    @property
    def order(self):
        # Parallel to JsonField so field_order works for both shapes
        return self.type

    def __str__(self):
        return "%s:%s" % (self.name, self.type)


def _parse_fields(value, field_class, member):
    codec.expect(value, (list,), member)
    fields = []
    seen = set()
    for i, f in enumerate(value):
        field = field_class.from_json(f, "%s[%d]" % (member, i))
        if field.name in seen:
            raise DuplicateNameError(field.name, member=member)
        seen.add(field.name)
        fields.append(field)
    return fields


class _Definition(Immutable):

    TYPE = None
    KEYS = ("fields", "partial_filter_selector", "selector")

    @property
    def filter_selector(self):
        """The predicate restricting indexed documents, under either key."""
        if self.partial_filter_selector is not None:
            return self.partial_filter_selector
        return self.selector

    def _set_selectors(self, partial_filter_selector, selector):
        if partial_filter_selector is not None:
            partial_filter_selector = codec.opaque(thaw(partial_filter_selector))
        if selector is not None:
            selector = codec.opaque(thaw(selector))
        self._set("partial_filter_selector", partial_filter_selector)
        self._set("selector", selector)

    @staticmethod
    def _selectors(obj):
        ret = {}
        for k in ("partial_filter_selector", "selector"):
            if obj.get(k) is not None:
                ret[k] = codec.expect_object(obj[k], "def." + k)
        return ret

    def _selectors_json(self, ret):
        if self.partial_filter_selector is not None:
            ret["partial_filter_selector"] = codec.opaque(
                    self.partial_filter_selector)
        if self.selector is not None:
            ret["selector"] = codec.opaque(self.selector)
        return ret


class JsonIndexDef(_Definition):

    TYPE = JSON
    FIELDS = ("fields", "partial_filter_selector", "selector")

    def __init__(self, fields, partial_filter_selector=None, selector=None):
        fields = tuple(fields)
        for f in fields:
            if not isinstance(f, JsonField):
                fmt = "json index fields must be JsonField, got %r"
                raise FieldShapeError(fmt % (f,), member="fields")
        self._set("fields", fields)
        self._set_selectors(partial_filter_selector, selector)

    @classmethod
    def from_json(klass, obj, member=LISTING_KEY):
        codec.expect_object(obj, member)
        text_only = [k for k in obj if k in TextIndexDef.KEYS
                and k not in klass.KEYS]
        if text_only:
            fmt = "option(s) only valid for text indexes: %s"
            raise FieldShapeError(fmt % ", ".join(text_only), member=member)
        codec.expect_keys(obj, klass.KEYS, member)
        if "fields" not in obj:
            msg = "json index definition has no fields"
            raise MalformedJSONError(msg, member=member)
        fields = _parse_fields(obj["fields"], JsonField, member + ".fields")
        if not fields:
            msg = "json index definition needs at least one field"
            raise MalformedJSONError(msg, member=member)
        return klass(fields, **klass._selectors(obj))

    def to_json(self, def_key=LISTING_KEY):
        ret = {"fields": [f.to_json(def_key) for f in self.fields]}
        return self._selectors_json(ret)


class TextIndexDef(_Definition):

    TYPE = TEXT
    KEYS = _Definition.KEYS + (
        "default_analyzer",
        "analyzer",
        "default_field",
        "index_array_lengths"
    )
    FIELDS = (
        "fields",
        "partial_filter_selector",
        "selector",
        "default_analyzer",
        "default_field",
        "index_array_lengths"
    )

    def __init__(self, fields=None, partial_filter_selector=None,
            selector=None, default_analyzer=None, default_field=None,
            index_array_lengths=None):
        # fields=None indexes every field of the document
        if fields is not None:
            fields = tuple(fields)
            for f in fields:
                if not isinstance(f, TextField):
                    fmt = "text index fields must be TextField, got %r"
                    raise FieldShapeError(fmt % (f,), member="fields")
        self._set("fields", fields)
        self._set_selectors(partial_filter_selector, selector)
        self._set("default_analyzer", codec.opaque(thaw(default_analyzer)))
        if default_field is not None:
            default_field = freeze_map(codec.opaque(thaw(default_field)))
        self._set("default_field", default_field)
        self._set("index_array_lengths", index_array_lengths)

    @classmethod
    def from_json(klass, obj, member=LISTING_KEY):
        codec.expect_object(obj, member)
        codec.expect_keys(obj, klass.KEYS, member)
        kwargs = klass._selectors(obj)
        if obj.get("fields") is not None:
            kwargs["fields"] = _parse_fields(obj["fields"], TextField,
                    member + ".fields")
        if "analyzer" in obj and "default_analyzer" in obj:
            msg = "both 'analyzer' and 'default_analyzer' are set"
            raise MalformedJSONError(msg, member=member)
        for k in ("default_analyzer", "analyzer"):
            if obj.get(k) is not None:
                kwargs["default_analyzer"] = codec.expect(obj[k],
                        (str, dict), "%s.%s" % (member, k))
        if obj.get("default_field") is not None:
            kwargs["default_field"] = codec.expect_object(
                    obj["default_field"], member + ".default_field")
        if obj.get("index_array_lengths") is not None:
            kwargs["index_array_lengths"] = codec.expect(
                    obj["index_array_lengths"], (bool,),
                    member + ".index_array_lengths")
        return klass(**kwargs)

    def to_json(self, def_key=LISTING_KEY):
        ret = {}
        if self.default_analyzer is not None:
            if def_key == CREATE_KEY:
                ret["analyzer"] = codec.opaque(self.default_analyzer)
            else:
                ret["default_analyzer"] = codec.opaque(self.default_analyzer)
        if self.default_field is not None:
            ret["default_field"] = thaw(self.default_field)
        self._selectors_json(ret)
        if self.fields is not None:
            ret["fields"] = [f.to_json(def_key) for f in self.fields]
        if self.index_array_lengths is not None:
            ret["index_array_lengths"] = self.index_array_lengths
        return ret


DEFINITIONS = {
    JSON: JsonIndexDef,
    TEXT: TextIndexDef
}


class IndexDefinition(Immutable):

    FIELDS = ("definition", "name", "ddoc", "partitioned")
    KEYS = ("ddoc", "name", "type", LISTING_KEY, CREATE_KEY, "partitioned")

    def __init__(self, definition, name=None, ddoc=None, partitioned=None):
        if not isinstance(definition, _Definition):
            raise MalformedJSONError("index definition must be a JsonIndexDef"
                    " or TextIndexDef", member="def")
        self._set("definition", definition)
        self._set("name", name)
        self._set("ddoc", ddoc)
        self._set("partitioned", partitioned)

    @property
    def type(self):
        return self.definition.TYPE

    @property
    def fields(self):
        return self.definition.fields

    @property
    def field_order(self):
        if self.fields is None:
            return []
        return [(f.name, f.order) for f in self.fields]

    @property
    def filter_selector(self):
        return self.definition.filter_selector

    @classmethod
    def from_json(klass, obj):
        codec.expect_object(obj, "index")
        codec.expect_keys(obj, klass.KEYS, "index")

        # The server treats a missing type as json
        type_ = obj.get("type", JSON)
        if not isinstance(type_, str) or type_ not in DEFINITIONS:
            raise UnknownIndexTypeError(type_)

        if LISTING_KEY in obj and CREATE_KEY in obj:
            msg = "index has both 'def' and 'index' members"
            raise MalformedJSONError(msg, member="def")
        key = LISTING_KEY if LISTING_KEY in obj else CREATE_KEY
        if key not in obj:
            msg = "index has no definition"
            raise MalformedJSONError(msg, member="def")
        definition = DEFINITIONS[type_].from_json(obj[key], key)

        kwargs = {}
        for k in ("name", "ddoc"):
            if obj.get(k) is not None:
                kwargs[k] = codec.expect_string(obj[k], k)
        if obj.get("partitioned") is not None:
            kwargs["partitioned"] = codec.expect(obj["partitioned"], (bool,),
                    "partitioned")
        idx = klass(definition, **kwargs)
        log.debug("Parsed %s index %s/%s", idx.type, idx.ddoc, idx.name)
        return idx

    def _to_json(self, def_key):
        ret = {}
        if self.ddoc is not None:
            ret["ddoc"] = self.ddoc
        if self.name is not None:
            ret["name"] = self.name
        ret["type"] = self.type
        ret[def_key] = self.definition.to_json(def_key)
        if self.partitioned is not None:
            ret["partitioned"] = self.partitioned
        return ret

    def to_json(self):
        return self._to_json(LISTING_KEY)

    def to_create_payload(self):
        """The request body for creating this index through /{db}/_index."""
        return self._to_json(CREATE_KEY)

    @classmethod
    def loads(klass, text):
        return klass.from_json(codec.loads(text))

    def dumps(self, **kwargs):
        return codec.dumps(self.to_json(), **kwargs)


class IndexSummary(Immutable):
    """\
    Any listed index, special ones included, reduced to the parts every
    index type has: its field names and the filter selector.
    """

    FIELDS = ("ddoc", "name", "type", "fields", "partial_filter_selector")

    def __init__(self, ddoc, name, type, fields, partial_filter_selector=None):
        self._set("ddoc", ddoc)
        self._set("name", name)
        self._set("type", type)
        self._set("fields", tuple(fields))
        self._set("partial_filter_selector",
                codec.opaque(thaw(partial_filter_selector)))

    @property
    def is_special(self):
        return self.type == SPECIAL

    @classmethod
    def from_json(klass, obj):
        codec.expect_object(obj, "index")
        definition = obj.get(LISTING_KEY) or obj.get(CREATE_KEY) or {}
        codec.expect_object(definition, "def")
        names = []
        for f in definition.get("fields") or []:
            if isinstance(f, str):
                names.append(f)
            elif _is_spelled_out(f):
                names.append(f["name"])
            elif isinstance(f, dict):
                names.extend(f.keys())
            else:
                fmt = "Invalid field entry in index '%s': %r"
                raise MalformedJSONError(fmt % (obj.get("name"), f),
                        member="fields")
        selector = definition.get("partial_filter_selector")
        if selector is None:
            selector = definition.get("selector")
        return klass(obj.get("ddoc"), obj.get("name"), obj.get("type"),
                names, partial_filter_selector=selector)

    def __str__(self):
        fmt = "ddoc: %s, name: %s, type: %s, fields: %s, " \
                "partial_filter_selector: %s"
        selector = self.partial_filter_selector
        if selector is not None:
            selector = codec.dumps(selector, separators=(",", ":"))
        return fmt % (self.ddoc, self.name, self.type, list(self.fields),
                selector)


class IndexList(object):
    """The parsed response of GET /{db}/_index."""

    def __init__(self, indexes, total_rows=None):
        self.indexes = codec.opaque(list(indexes))
        self.total_rows = total_rows

    @classmethod
    def from_json(klass, obj):
        codec.expect_object(obj, "response")
        if "indexes" not in obj:
            raise MalformedJSONError("index list has no 'indexes' member",
                    member="indexes")
        indexes = codec.expect(obj["indexes"], (list,), "indexes")
        for i, idx in enumerate(indexes):
            codec.expect_object(idx, "indexes[%d]" % i)
        return klass(indexes, total_rows=obj.get("total_rows"))

    @classmethod
    def loads(klass, text):
        return klass.from_json(codec.loads(text))

    def __len__(self):
        return len(self.indexes)

    def _of_type(self, type_):
        return [IndexDefinition.from_json(idx)
                for idx in self.indexes if idx.get("type") == type_]

    def json_indexes(self):
        return self._of_type(JSON)

    def text_indexes(self):
        return self._of_type(TEXT)

    def all_indexes(self):
        return [IndexSummary.from_json(idx) for idx in self.indexes
                if isinstance(idx.get("type"), str)]


class _IndexBuilder(object):

    def __init__(self):
        self._name = None
        self._ddoc = None
        self._partitioned = None
        self._selector = None
        self._fields = []

    def name(self, name):
        self._name = name
        return self

    def design_document(self, ddoc):
        self._ddoc = ddoc
        return self

    def partitioned(self, flag=True):
        self._partitioned = flag
        return self

    def partial_filter_selector(self, selector):
        if isinstance(selector, str):
            selector = codec.loads(selector)
        self._selector = codec.expect_object(selector,
                "partial_filter_selector")
        return self

    def _add_fields(self, fields):
        for f in fields:
            if any(f.name == g.name for g in self._fields):
                raise DuplicateNameError(f.name, member="fields")
            self._fields.append(f)
        return self

    def _definition(self):
        raise NotImplementedError()

    def build(self):
        return IndexDefinition(self._definition(), name=self._name,
                ddoc=self._ddoc, partitioned=self._partitioned)

    def definition(self):
        """JSON text of the create request for the index being built."""
        return codec.dumps(self.build().to_create_payload())


class JsonIndexBuilder(_IndexBuilder):

    def asc(self, *names):
        return self._add_fields([JsonField.asc(n) for n in names])

    def desc(self, *names):
        return self._add_fields([JsonField.desc(n) for n in names])

    def fields(self, *fields):
        fields = [JsonField(f) if isinstance(f, str) else f for f in fields]
        return self._add_fields(fields)

    def _definition(self):
        if not self._fields:
            raise MalformedJSONError("json index needs at least one field",
                    member="fields")
        return JsonIndexDef(self._fields,
                partial_filter_selector=self._selector)


class TextIndexBuilder(_IndexBuilder):

    def __init__(self):
        super(TextIndexBuilder, self).__init__()
        self._analyzer = None
        self._default_field = None
        self._index_array_lengths = None

    def string(self, *names):
        return self._add_fields([TextField(n, STRING) for n in names])

    def number(self, *names):
        return self._add_fields([TextField(n, NUMBER) for n in names])

    def boolean(self, *names):
        return self._add_fields([TextField(n, BOOLEAN) for n in names])

    def analyzer(self, analyzer):
        # An analyzer object may be passed as JSON text
        if isinstance(analyzer, str) and analyzer.lstrip().startswith("{"):
            analyzer = codec.loads(analyzer)
        self._analyzer = codec.expect(analyzer, (str, dict), "analyzer")
        return self

    def default_field(self, enabled, analyzer=None):
        self._default_field = {"enabled": enabled}
        if analyzer is not None:
            self._default_field["analyzer"] = analyzer
        return self

    def index_array_lengths(self, flag):
        self._index_array_lengths = flag
        return self

    def _definition(self):
        return TextIndexDef(self._fields or None,
                partial_filter_selector=self._selector,
                default_analyzer=self._analyzer,
                default_field=self._default_field,
                index_array_lengths=self._index_array_lengths)
