
class DescriptorError(ValueError):
    """Base class for every descriptor parsing or validation failure."""

    def __init__(self, msg, member=None):
        super(DescriptorError, self).__init__(msg)
        self.member = member


class MalformedJSONError(DescriptorError):
    pass


class UnknownIndexTypeError(DescriptorError):
    def __init__(self, type_, member="type"):
        msg = "Unknown index type: %r" % (type_,)
        super(UnknownIndexTypeError, self).__init__(msg, member=member)
        self.type = type_


class DuplicateNameError(DescriptorError):
    def __init__(self, name, member=None):
        msg = "Duplicate name: %r" % (name,)
        super(DuplicateNameError, self).__init__(msg, member=member)
        self.name = name


class FieldShapeError(DescriptorError):
    pass
