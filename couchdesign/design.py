"""\
Design documents.

A design document bundles the server side functions of a database: map
and reduce views, search indexes, filters, shows, lists, updates, a
validation function and URL rewrite rules. Function bodies are kept as
opaque text; nothing here parses or runs them.
"""

import logging
import os

from couchdesign import codec
from couchdesign.env import CONFIG
from couchdesign.errors import DescriptorError, MalformedJSONError
from couchdesign.value import Immutable, freeze_map, thaw


log = logging.getLogger(__name__)


DESIGN_PREFIX = "_design/"
LANG_QUERY = "query"
BUILTIN_REDUCERS = frozenset([
    "_sum",
    "_count",
    "_stats",
    "_approx_count_distinct"
])


def ensure_design_prefix(docid):
    if not docid.startswith(DESIGN_PREFIX):
        docid = DESIGN_PREFIX + docid
    return docid


def strip_design_prefix(docid):
    if docid.startswith(DESIGN_PREFIX):
        return docid[len(DESIGN_PREFIX):]
    return docid


class MapReduce(Immutable):

    FIELDS = ("map", "reduce", "options", "dbcopy")

    def __init__(self, map, reduce=None, options=None, dbcopy=None):
        if isinstance(map, str):
            self._set("map", map)
        else:
            self._set("map", freeze_map(codec.opaque(thaw(map))))
        self._set("reduce", reduce)
        if options is not None:
            options = freeze_map(codec.opaque(thaw(options)))
        self._set("options", options)
        self._set("dbcopy", dbcopy)

    @property
    def is_builtin_reduce(self):
        if self.reduce is None:
            return False
        return self.reduce.strip() in BUILTIN_REDUCERS

    @classmethod
    def from_json(klass, obj, member="view", allow_json_map=False):
        codec.expect_object(obj, member)
        codec.expect_keys(obj, klass.FIELDS, member)
        if "map" not in obj:
            msg = "'%s' has no map function" % member
            raise MalformedJSONError(msg, member=member)
        if allow_json_map:
            codec.expect(obj["map"], (str, dict), member + ".map")
        else:
            codec.expect_string(obj["map"], member + ".map")
        reduce = obj.get("reduce")
        if reduce is not None:
            codec.expect_string(reduce, member + ".reduce")
        options = obj.get("options")
        if options is not None:
            codec.expect_object(options, member + ".options")
        dbcopy = obj.get("dbcopy")
        if dbcopy is not None:
            codec.expect_string(dbcopy, member + ".dbcopy")
        return klass(obj["map"], reduce=reduce, options=options, dbcopy=dbcopy)

    def to_json(self):
        ret = {"map": thaw(self.map)}
        if self.reduce is not None:
            ret["reduce"] = self.reduce
        if self.dbcopy is not None:
            ret["dbcopy"] = self.dbcopy
        if self.options is not None:
            ret["options"] = thaw(self.options)
        return ret


class SearchIndex(Immutable):
    """\
    A search (full text) index function.

    Normally stored as {"index": "function(doc) {...}"} with an optional
    analyzer. A bare function string is accepted as well and written back
    the same way.
    """

    FIELDS = ("index", "analyzer", "bare")

    def __init__(self, index, analyzer=None, bare=False):
        if bare and analyzer is not None:
            raise MalformedJSONError("a bare search index can't set an analyzer")
        self._set("index", index)
        self._set("analyzer", codec.opaque(thaw(analyzer)))
        self._set("bare", bare)

    @classmethod
    def from_json(klass, obj, member="index"):
        if isinstance(obj, str):
            return klass(obj, bare=True)
        codec.expect_object(obj, member)
        codec.expect_keys(obj, ("index", "analyzer"), member)
        if "index" not in obj:
            msg = "'%s' has no index function" % member
            raise MalformedJSONError(msg, member=member)
        codec.expect_string(obj["index"], member + ".index")
        analyzer = obj.get("analyzer")
        if analyzer is not None:
            codec.expect(analyzer, (str, dict), member + ".analyzer")
        return klass(obj["index"], analyzer=analyzer)

    def to_json(self):
        if self.bare:
            return self.index
        ret = {"index": self.index}
        if self.analyzer is not None:
            ret["analyzer"] = codec.opaque(self.analyzer)
        return ret


class RewriteRule(Immutable):

    FIELDS = ("from_", "to", "method", "query")

    def __init__(self, from_, to, method=None, query=None):
        self._set("from_", from_)
        self._set("to", to)
        self._set("method", method)
        if query is not None:
            query = freeze_map(codec.opaque(thaw(query)))
        self._set("query", query)

    @classmethod
    def from_json(klass, obj, member="rewrite"):
        codec.expect_object(obj, member)
        codec.expect_keys(obj, ("from", "to", "method", "query"), member)
        for k in ("from", "to"):
            if k not in obj:
                fmt = "'%s' has no '%s' member"
                raise MalformedJSONError(fmt % (member, k), member=member)
            codec.expect_string(obj[k], "%s.%s" % (member, k))
        method = obj.get("method")
        if method is not None:
            codec.expect_string(method, member + ".method")
        query = obj.get("query")
        if query is not None:
            codec.expect_object(query, member + ".query")
        return klass(obj["from"], obj["to"], method=method, query=query)

    def to_json(self):
        ret = {"from": self.from_, "to": self.to}
        if self.method is not None:
            ret["method"] = self.method
        if self.query is not None:
            ret["query"] = thaw(self.query)
        return ret


def _coerce_map(value, klass, **kwargs):
    # Plain JSON values are accepted in place of descriptor objects
    if value is None:
        return None
    ret = {}
    for name, v in value.items():
        if not isinstance(v, klass):
            v = klass.from_json(v, name, **kwargs)
        ret[name] = v
    return freeze_map(ret)


def _search_map(value, member):
    codec.expect_object(value, member)
    ret = {}
    for name, idx in value.items():
        ret[name] = SearchIndex.from_json(idx, "%s.%s" % (member, name))
    return ret


def _view_map(value, member, language):
    codec.expect_object(value, member)
    ret = {}
    for name, view in value.items():
        ret[name] = MapReduce.from_json(view, "%s.%s" % (member, name),
                allow_json_map=(language == LANG_QUERY))
    return ret


class DesignDocument(Immutable):

    FIELDS = (
        "id",
        "rev",
        "language",
        "views",
        "indexes",
        "validate_doc_update",
        "filters",
        "shows",
        "lists",
        "updates",
        "rewrites",
        "fulltext",
        "extra"
    )

    # Wire order of the known members
    WIRE = (
        ("_id", "id"),
        ("_rev", "rev"),
        ("language", "language"),
        ("views", "views"),
        ("indexes", "indexes"),
        ("validate_doc_update", "validate_doc_update"),
        ("filters", "filters"),
        ("shows", "shows"),
        ("lists", "lists"),
        ("updates", "updates"),
        ("rewrites", "rewrites"),
        ("fulltext", "fulltext")
    )

    def __init__(self, id, rev=None, language=None, views=None, indexes=None,
            validate_doc_update=None, filters=None, shows=None, lists=None,
            updates=None, rewrites=None, fulltext=None, extra=None):
        if not isinstance(id, str) or not id:
            raise MalformedJSONError("design document id must be a non-empty "
                    "string", member="_id")
        if CONFIG.add_prefix:
            id = ensure_design_prefix(id)
        self._set("id", id)
        self._set("rev", rev)
        self._set("language", language)
        self._set("views", _coerce_map(views, MapReduce,
                allow_json_map=(language == LANG_QUERY)))
        self._set("indexes", _coerce_map(indexes, SearchIndex))
        self._set("validate_doc_update", validate_doc_update)
        self._set("filters", freeze_map(filters))
        self._set("shows", freeze_map(shows))
        self._set("lists", freeze_map(lists))
        self._set("updates", freeze_map(updates))
        if rewrites is not None:
            rewrites = tuple(r if isinstance(r, RewriteRule)
                    else RewriteRule.from_json(r) for r in rewrites)
        self._set("rewrites", rewrites)
        self._set("fulltext", _coerce_map(fulltext, SearchIndex))
        if extra is not None:
            extra = freeze_map(codec.opaque(thaw(extra)))
        self._set("extra", extra)

    @property
    def name(self):
        return strip_design_prefix(self.id)

    @property
    def is_query(self):
        return self.language == LANG_QUERY

    def view(self, name):
        if self.views is None or name not in self.views:
            raise KeyError(name)
        return self.views[name]

    def same_content(self, other):
        """\
        True when both documents only differ in their revision, meaning
        that uploading one in place of the other would change nothing.
        """
        if not isinstance(other, DesignDocument):
            return False
        return self._values(("rev",)) == other._values(("rev",))

    @classmethod
    def from_json(klass, obj):
        codec.expect_object(obj, "design document")
        if "_id" not in obj:
            raise MalformedJSONError("design document has no _id", member="_id")
        codec.expect_string(obj["_id"], "_id")

        kwargs = {}
        for k in ("_rev", "language", "validate_doc_update"):
            if obj.get(k) is not None:
                kwargs[k.lstrip("_")] = codec.expect_string(obj[k], k)
        language = kwargs.get("language")

        if obj.get("views") is not None:
            kwargs["views"] = _view_map(obj["views"], "views", language)
        for k in ("indexes", "fulltext"):
            if obj.get(k) is not None:
                kwargs[k] = _search_map(obj[k], k)
        for k in ("filters", "shows", "lists", "updates"):
            if obj.get(k) is not None:
                kwargs[k] = codec.string_map(obj[k], k)
        if obj.get("rewrites") is not None:
            rewrites = codec.expect(obj["rewrites"], (list,), "rewrites")
            kwargs["rewrites"] = [
                RewriteRule.from_json(r, "rewrites[%d]" % i)
                for i, r in enumerate(rewrites)
            ]

        known = set(k for k, _ in klass.WIRE)
        extra = dict((k, v) for k, v in obj.items() if k not in known)
        if extra:
            kwargs["extra"] = extra
        ddoc = klass(obj["_id"], **kwargs)
        log.debug("Parsed design document %s", ddoc.id)
        return ddoc

    def to_json(self):
        ret = {}
        for key, attr in self.WIRE:
            value = getattr(self, attr)
            if value is None:
                continue
            if attr in ("views", "indexes", "fulltext"):
                value = dict((k, v.to_json()) for k, v in value.items())
            elif attr == "rewrites":
                value = [r.to_json() for r in value]
            else:
                value = thaw(value)
            ret[key] = value
        if self.extra is not None:
            ret.update(thaw(self.extra))
        return ret

    @classmethod
    def loads(klass, text):
        return klass.from_json(codec.loads(text))

    def dumps(self, **kwargs):
        return codec.dumps(self.to_json(), **kwargs)


def from_file(path):
    """Load a design document from a JSON file."""
    log.debug("Loading design document from %s", path)
    with open(path, "rb") as f:
        text = f.read()
    try:
        return DesignDocument.loads(text)
    except DescriptorError as e:
        log.warning("Invalid design document in %s: %s", path, e)
        raise


def iter_files(path, extensions=None):
    """\
    Yield the descriptor files below path, sorted, each one only once. A
    path naming a single file is yielded as is whatever its extension.
    """
    if extensions is None:
        extensions = CONFIG.extensions
    if not os.path.isdir(path):
        yield path
        return
    seen = set()
    for root, dnames, fnames in os.walk(path):
        dnames.sort()
        for fname in sorted(fnames):
            if not fname.lower().endswith(tuple(extensions)):
                log.debug("Skipping %s", os.path.join(root, fname))
                continue
            fname = os.path.abspath(os.path.join(root, fname))
            if fname in seen:
                continue
            seen.add(fname)
            yield fname


def from_directory(path, extensions=None):
    return [from_file(f) for f in iter_files(path, extensions=extensions)]
