
import unittest

from hamcrest import assert_that, calling, contains_exactly, is_, none, raises

from couchdesign.env import EnvironmentConfig


class EnvironmentConfigTests(unittest.TestCase):

    def test_defaults(self):
        cfg = EnvironmentConfig(environ={})
        assert_that(cfg.language, is_("javascript"))
        assert_that(cfg.design_dir, none())
        assert_that(cfg.add_prefix, is_(True))
        assert_that(cfg.log_level, is_("WARNING"))
        assert_that(cfg.extensions, contains_exactly(".js", ".json"))

    def test_environment_overrides(self):
        cfg = EnvironmentConfig(environ={
            "COUCHDESIGN_LANGUAGE": "erlang",
            "COUCHDESIGN_ADD_PREFIX": "no",
            "COUCHDESIGN_EXTENSIONS": "ddoc, .JSON",
            "COUCHDESIGN_LOG_LEVEL": "debug",
            "UNRELATED": "ignored"
        })
        assert_that(cfg.language, is_("erlang"))
        assert_that(cfg.add_prefix, is_(False))
        assert_that(cfg.extensions, contains_exactly(".ddoc", ".json"))
        assert_that(cfg.log_level, is_("DEBUG"))

    def test_unknown_attribute(self):
        cfg = EnvironmentConfig(environ={})
        assert_that(calling(getattr).with_args(cfg, "colour"),
                raises(AttributeError))

    def test_empty_extensions(self):
        env = {"COUCHDESIGN_EXTENSIONS": " , "}
        assert_that(calling(EnvironmentConfig).with_args(environ=env),
                raises(ValueError))

    def test_set(self):
        cfg = EnvironmentConfig(environ={})
        cfg.set("add_prefix", False)
        assert_that(cfg.add_prefix, is_(False))
        assert_that(calling(cfg.set).with_args("colour", "red"),
                raises(ValueError))
