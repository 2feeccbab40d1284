
import os


TRUE_VALUES = ("1", "true", "yes", "on")


class EnvironmentConfig(object):

    DEFAULTS = {
        "COUCHDESIGN_LANGUAGE": "javascript",
        "COUCHDESIGN_DESIGN_DIR": None,
        "COUCHDESIGN_EXTENSIONS": ",".join([
            ".js",
            ".json"
        ]),
        "COUCHDESIGN_ADD_PREFIX": "true",
        "COUCHDESIGN_LOG_LEVEL": "WARNING"
    }

    def __init__(self, environ=None):
        if environ is None:
            environ = os.environ
        self.cfg = self.DEFAULTS.copy()
        for k in self.cfg:
            if k in environ:
                self.cfg[k] = environ[k]

        # Fail early on an unusable extension list
        self.extensions

    def __getattr__(self, name):
        envname = "COUCHDESIGN_%s" % name.upper()
        if envname not in self.cfg:
            fmt = "'%s' object has no attribute '%s'"
            raise AttributeError(fmt % (self.__class__.__name__, name))
        return self.cfg[envname]

    @property
    def extensions(self):
        exts = []
        for e in self.cfg["COUCHDESIGN_EXTENSIONS"].split(","):
            e = e.strip().lower()
            if not e:
                continue
            if not e.startswith("."):
                e = "." + e
            exts.append(e)
        if not exts:
            raise ValueError("No descriptor file extensions configured")
        return tuple(exts)

    @property
    def add_prefix(self):
        value = self.cfg["COUCHDESIGN_ADD_PREFIX"]
        if isinstance(value, bool):
            return value
        return value.strip().lower() in TRUE_VALUES

    @property
    def log_level(self):
        return self.cfg["COUCHDESIGN_LOG_LEVEL"].strip().upper()

    def set(self, name, value):
        envname = "COUCHDESIGN_%s" % name.upper()
        if envname not in self.cfg:
            raise ValueError("No config option named '%s'" % name)
        self.cfg[envname] = value


CONFIG = EnvironmentConfig()
