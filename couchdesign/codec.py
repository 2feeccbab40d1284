
import copy
import json
import logging

from couchdesign.errors import DuplicateNameError, MalformedJSONError


log = logging.getLogger(__name__)


JSON_TYPES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
}


def _reject_duplicates(pairs):
    ret = {}
    for k, v in pairs:
        if k in ret:
            raise DuplicateNameError(k, member=k)
        ret[k] = v
    return ret


def loads(text):
    """\
    Decode JSON text into plain Python values.

    Object keys must be unique at every level; a repeated key (such as
    two views with the same name) raises DuplicateNameError instead of
    silently keeping the last value.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedJSONError("Invalid UTF-8: %s" % e)
    try:
        return json.loads(text, object_pairs_hook=_reject_duplicates)
    except json.JSONDecodeError as e:
        log.debug("Rejected JSON text: %s", e)
        raise MalformedJSONError("Invalid JSON: %s" % e)


def dumps(obj, **kwargs):
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(obj, **kwargs)


def type_name(value):
    if value is None:
        return "null"
    return JSON_TYPES.get(type(value), type(value).__name__)


def expect(value, types, member):
    # bool is an int subclass, so numbers are checked explicitly
    if isinstance(value, bool) and bool not in types:
        ok = False
    else:
        ok = isinstance(value, types)
    if not ok:
        want = " or ".join(sorted(set(JSON_TYPES.get(t, t.__name__)
                for t in types)))
        msg = "'%s' must be %s, got %s" % (member, want, type_name(value))
        raise MalformedJSONError(msg, member=member)
    return value


def expect_object(value, member):
    return expect(value, (dict,), member)


def expect_string(value, member):
    return expect(value, (str,), member)


def expect_keys(obj, allowed, member):
    unknown = [k for k in obj if k not in allowed]
    if unknown:
        msg = "Unknown member(s) in '%s': %s" % (member, ", ".join(unknown))
        raise MalformedJSONError(msg, member=member)


def string_map(value, member):
    """Validate a name -> function body mapping."""
    expect_object(value, member)
    for name, body in value.items():
        expect_string(body, "%s.%s" % (member, name))
    return dict(value)


def opaque(value):
    # Selectors, analyzers and the like are passed through untouched.
    return copy.deepcopy(value)
