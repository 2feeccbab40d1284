
from hamcrest import is_
from hamcrest.core.base_matcher import BaseMatcher

from couchdesign.design import DesignDocument
from couchdesign.index import IndexDefinition


is_json_index = is_("json")
is_text_index = is_("text")


class RoundTrips(BaseMatcher):
    def __init__(self, klass):
        self.klass = klass

    def _reparse(self, obj):
        return self.klass.loads(self.klass.from_json(obj).dumps())

    def _matches(self, obj):
        return self._reparse(obj).to_json() == obj

    def describe_to(self, description):
        msg = "{0} that survives a wire round trip".format(self.klass.__name__)
        description.append_text(msg)

    def describe_mismatch(self, item, mismatch_description):
        msg = "came back as {0}".format(self._reparse(item).to_json())
        mismatch_description.append_text(msg)


class HasFieldOrder(BaseMatcher):
    def __init__(self, expected):
        self.expected = list(expected)

    def _matches(self, idx):
        return [str(f) for f in idx.fields or []] == self.expected

    def describe_to(self, description):
        msg = "index with field order {0}".format(self.expected)
        description.append_text(msg)

    def describe_mismatch(self, item, mismatch_description):
        got = [str(f) for f in item.fields or []]
        mismatch_description.append_text("field order was {0}".format(got))


def round_trips_as_design():
    return RoundTrips(DesignDocument)


def round_trips_as_index():
    return RoundTrips(IndexDefinition)


def has_field_order(*expected):
    return HasFieldOrder(expected)
