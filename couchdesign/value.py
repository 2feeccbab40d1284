
import types


def freeze_map(value):
    if value is None:
        return None
    return types.MappingProxyType(dict(value))


def thaw(value):
    if isinstance(value, (dict, types.MappingProxyType)):
        return dict((k, thaw(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return [thaw(v) for v in value]
    return value


class Immutable(object):
    """\
    Base for value descriptors.

    Attributes are assigned once through _set() in __init__ and can't be
    changed afterwards. Subclasses list their constructor arguments in
    FIELDS; replace() builds a new instance from them.
    """

    FIELDS = ()

    def _set(self, name, value):
        object.__setattr__(self, name, value)

    def __setattr__(self, name, value):
        fmt = "cannot set '%s' on immutable %s"
        raise AttributeError(fmt % (name, self.__class__.__name__))

    def __delattr__(self, name):
        fmt = "cannot delete '%s' from immutable %s"
        raise AttributeError(fmt % (name, self.__class__.__name__))

    def replace(self, **changes):
        for k in changes:
            if k not in self.FIELDS:
                fmt = "%s has no field '%s'"
                raise TypeError(fmt % (self.__class__.__name__, k))
        kwargs = dict((f, getattr(self, f)) for f in self.FIELDS)
        kwargs.update(changes)
        return self.__class__(**kwargs)

    def _values(self, exclude=()):
        return tuple(thaw(getattr(self, f))
                for f in self.FIELDS if f not in exclude)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._values() == other._values()

    def __ne__(self, other):
        ret = self.__eq__(other)
        if ret is NotImplemented:
            return ret
        return not ret

    __hash__ = None

    def __repr__(self):
        parts = []
        for f in self.FIELDS:
            v = getattr(self, f)
            if v is None:
                continue
            parts.append("%s=%r" % (f, thaw(v)))
        return "%s(%s)" % (self.__class__.__name__, ", ".join(parts))
