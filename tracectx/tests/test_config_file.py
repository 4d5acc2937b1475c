"""Tests for config file loading and priority."""

import logging
import os
import tempfile
from pathlib import Path
import unittest
from unittest import mock

from tracectx import config
from tracectx.errors import ConfigError


class TestConfigFileLoading(unittest.TestCase):
    """Test TOML config file loading."""
    
    def test_load_toml_config_basic(self):
        """Test loading a basic TOML config file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
            f.write("""
[propagation]
traceparent_header = "x-traceparent"
case_insensitive_headers = false

[logging]
debug = true
""")
            f.flush()

        try:
            loaded = config.load_toml_config(f.name)

            self.assertEqual(loaded["propagation"]["traceparent_header"], "x-traceparent")
            self.assertFalse(loaded["propagation"]["case_insensitive_headers"])
            self.assertTrue(loaded["logging"]["debug"])
        finally:
            os.unlink(f.name)
    
    def test_load_toml_config_missing_file(self):
        """Test that loading missing file returns empty dict."""
        loaded = config.load_toml_config("/nonexistent/file.toml")
        self.assertEqual(loaded, {})
    
    def test_load_toml_config_invalid_toml(self):
        """Test that invalid TOML raises ConfigError."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
            f.write("invalid [toml content")
            f.flush()

        try:
            with self.assertRaises(ConfigError):
                config.load_toml_config(f.name)
        finally:
            os.unlink(f.name)
    
    def test_find_config_file_current_directory(self):
        """Test finding config file in current directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "tracectx.toml"
            config_path.write_text("[logging]\ndebug = true")
            
            original_cwd = os.getcwd()
            try:
                os.chdir(tmpdir)
                
                found = config.find_config_file()
                self.assertIsNotNone(found)
                self.assertEqual(Path(found).name, "tracectx.toml")
                self.assertTrue(config.load_config().logging.debug)
            finally:
                os.chdir(original_cwd)


class TestConfigPriority(unittest.TestCase):
    """Test configuration loading priority."""

    def setUp(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
            f.write("""
[propagation]
traceparent_header = "file-parent"
tracestate_header = "file-state"
""")
        self.config_file = f.name

    def tearDown(self):
        os.unlink(self.config_file)
        config.reset_config()

    def test_defaults(self):
        loaded = config.load_config(config_file="/nonexistent/file.toml")
        self.assertEqual(loaded.propagation.traceparent_header, "traceparent")
        self.assertEqual(loaded.propagation.tracestate_header, "tracestate")
        self.assertTrue(loaded.propagation.case_insensitive_headers)
        self.assertFalse(loaded.logging.debug)

    def test_file_values_used(self):
        loaded = config.load_config(config_file=self.config_file)
        self.assertEqual(loaded.propagation.traceparent_header, "file-parent")
        self.assertEqual(loaded.propagation.tracestate_header, "file-state")

    def test_env_overrides_file(self):
        env = {"TRACECTX_TRACEPARENT_HEADER": "env-parent", "TRACECTX_CASE_INSENSITIVE_HEADERS": "false"}
        with mock.patch.dict(os.environ, env):
            loaded = config.load_config(config_file=self.config_file)

        self.assertEqual(loaded.propagation.traceparent_header, "env-parent")
        self.assertEqual(loaded.propagation.tracestate_header, "file-state")
        self.assertFalse(loaded.propagation.case_insensitive_headers)

    def test_explicit_overrides_env(self):
        with mock.patch.dict(os.environ, {"TRACECTX_TRACEPARENT_HEADER": "env-parent"}):
            loaded = config.load_config(
                config_file=self.config_file,
                overrides={"propagation": {"traceparent_header": "explicit-parent"}},
            )

        self.assertEqual(loaded.propagation.traceparent_header, "explicit-parent")

    def test_get_config_is_cached_until_reset(self):
        first = config.get_config()
        self.assertIs(config.get_config(), first)
        config.reset_config()
        self.assertIsNot(config.get_config(), first)


class TestConfigValidation(unittest.TestCase):

    def test_valid(self):
        is_valid, msg, loaded = config.validate_config(overrides={"logging": {"level": "info"}})
        self.assertTrue(is_valid)
        self.assertEqual(loaded.logging.level, "INFO")

    def test_invalid_header_name(self):
        is_valid, msg, loaded = config.validate_config(
            overrides={"propagation": {"traceparent_header": "bad header"}}
        )
        self.assertFalse(is_valid)
        self.assertIsNone(loaded)
        self.assertIn("invalid header name", msg)

    def test_conflicting_header_names(self):
        is_valid, msg, loaded = config.validate_config(
            overrides={"propagation": {"traceparent_header": "trace", "tracestate_header": "TRACE"}}
        )
        self.assertFalse(is_valid)

    def test_unknown_log_level(self):
        is_valid, msg, loaded = config.validate_config(overrides={"logging": {"level": "verbose"}})
        self.assertFalse(is_valid)

    def test_unknown_section(self):
        with self.assertRaises(ConfigError):
            config.load_config(overrides={"exporters": {"enable_console": True}})


class TestInvalidConfigFallback(unittest.TestCase):
    """Header handling keeps working when the discovered config is broken."""

    TRACEPARENT = "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"

    def tearDown(self):
        config.reset_config()

    def test_invalid_env_value_falls_back_to_defaults(self):
        from tracectx.context.trace_context import TraceContext

        with mock.patch.dict(os.environ, {"TRACECTX_DEBUG": "maybe"}):
            with self.assertLogs("tracectx.config", level="WARNING") as captured:
                context = TraceContext.from_request({"traceparent": self.TRACEPARENT})

        self.assertEqual(context.parent_id, "b7ad6b7169203331")
        self.assertEqual(config.get_config(), config.TraceContextConfig())
        self.assertTrue(any("using defaults" in line for line in captured.output))

    def test_invalid_toml_file_falls_back_to_defaults(self):
        from tracectx.context.trace_context import TraceContext

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "tracectx.toml").write_text("invalid [toml")

            original_cwd = os.getcwd()
            try:
                os.chdir(tmpdir)
                context = TraceContext.from_request({"traceparent": self.TRACEPARENT})
                outbound = {}
                context.propagate(outbound, True)
            finally:
                os.chdir(original_cwd)

        self.assertEqual(set(outbound), {"traceparent"})
        self.assertTrue(outbound["traceparent"].startswith("00-0af7651916cd43dd8448eb211c80319c-"))

    def test_explicit_load_still_raises(self):
        with mock.patch.dict(os.environ, {"TRACECTX_DEBUG": "maybe"}):
            with self.assertRaises(ConfigError):
                config.load_config()


class TestConfigureLogging(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("tracectx")
        self.original_level = self.logger.level

    def tearDown(self):
        self.logger.setLevel(self.original_level)
        config.reset_config()

    def test_debug_enables_debug_logging(self):
        config.set_config(config.load_config(overrides={"logging": {"debug": True}}))
        self.assertEqual(self.logger.level, logging.DEBUG)

    def test_level_applied(self):
        config.set_config(config.load_config(overrides={"logging": {"level": "error"}}))
        self.assertEqual(self.logger.level, logging.ERROR)

    def test_debug_logs_discarded_traceparent(self):
        from tracectx.context.traceparent import TraceParent

        config.set_config(config.load_config(overrides={"logging": {"debug": True}}))
        with self.assertLogs("tracectx.context.traceparent", level="DEBUG") as captured:
            TraceParent.try_parse("00-nope")
        self.assertTrue(any("malformed traceparent" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
