
import copy

from couchdesign.env import CONFIG


_simple_map_red_ddoc = {
    "_id": "_design/foo",
    "views": {
        "bar": {
            "map": "function(doc) {emit(doc.key, doc.val);}"
        },
        "bam": {
            "map": "function(doc) {emit(doc.int % 2, doc.val);}",
            "reduce": "_sum"
        }
    }
}


_search_ddoc = {
    "_id": "_design/search",
    "indexes": {
        "text": {
            "index": "function(doc) {index(doc.val);}"
        }
    }
}


_query_ddoc = {
    "_id": "_design/testindexddoc",
    "language": "query",
    "views": {
        "complexjson": {
            "map": {
                "fields": {"Person_name": "asc", "Movie_year": "desc"},
                "partial_filter_selector": {"year": {"$gt": 2010}}
            },
            "reduce": "_count",
            "options": {
                "def": {
                    "fields": [{"Person_name": "asc"}, {"Movie_year": "desc"}]
                }
            }
        }
    }
}


_json_index = {
    "ddoc": "_design/testindexddoc",
    "name": "complexjson",
    "type": "json",
    "def": {
        "partial_filter_selector": {"year": {"$gt": 2010}},
        "fields": [{"Person_name": "asc"}, {"Movie_year": "desc"}]
    }
}


_text_index = {
    "ddoc": "_design/testindexddoc",
    "name": "simpleselector",
    "type": "text",
    "def": {
        "default_analyzer": "keyword",
        "default_field": {},
        "selector": {"year": {"$gt": 2010}},
        "fields": [{"Movie_name": "string"}],
        "index_array_lengths": True
    }
}


_all_docs_index = {
    "ddoc": None,
    "name": "_all_docs",
    "type": "special",
    "def": {"fields": [{"_id": "asc"}]}
}


def simple_map_red_ddoc(language=None):
    ret = copy.deepcopy(_simple_map_red_ddoc)
    ret["language"] = language or CONFIG.language
    return ret


def search_ddoc():
    return copy.deepcopy(_search_ddoc)


def query_ddoc():
    return copy.deepcopy(_query_ddoc)


def json_index():
    return copy.deepcopy(_json_index)


def text_index():
    return copy.deepcopy(_text_index)


def index_list(*indexes):
    if not indexes:
        indexes = (_all_docs_index, _json_index, _text_index)
    return {
        "total_rows": len(indexes),
        "indexes": copy.deepcopy(list(indexes))
    }


def gen_views(count=5, reduce=None):
    ret = {}
    for i in range(count):
        view = {"map": "function(doc) {emit(doc.f%06d, null);}" % i}
        if reduce is not None:
            view["reduce"] = reduce
        ret["v%06d" % i] = view
    return ret
