import logging
import os
from unittest.mock import patch

import pytest

from .formatter import Formatter
from .logs import (
  FORMAT,
  TRACE,
  create_log_levels,
  create_logging_config,
  get_log_levels,
  get_logging_config,
  set_log_level,
  set_log_levels,
  trace,
)


class TestLogs:
  @pytest.fixture(autouse=True)
  def reset_levels(self):
    from . import logs

    saved = dict(logs.LOG_LEVELS)
    yield
    logs.LOG_LEVELS = saved

  def test_trace_level_is_registered(self):
    assert logging.getLevelName(TRACE) == "TRACE"
    assert TRACE < logging.DEBUG

  def test_create_log_levels_when_no_variable_is_defined(self):
    result = create_log_levels(None)
    assert result == {"default": "INFO"}, "the default level for surge modules is info"

  def test_create_log_levels_when_only_a_level_is_defined(self):
    result = create_log_levels("debug")
    assert result == {"default": "DEBUG"}

  def test_create_log_levels_when_only_a_module_is_defined(self):
    result = create_log_levels("worker=trace")
    assert result == {"default": "INFO", "worker": "TRACE"}

  def test_create_log_levels_when_some_modules_are_defined(self):
    result = create_log_levels("DEBUG,worker=trace, dispatcher = warning")
    assert result == {"default": "DEBUG", "worker": "TRACE", "dispatcher": "WARNING"}
    assert result.get("stats", result.get("default")) == "DEBUG", (
      "the default level can be used for an unspecified module"
    )

  def test_create_log_levels_ignores_empty_entries(self):
    assert create_log_levels("info,,") == {"default": "INFO"}

  def test_create_log_levels_rejects_unknown_levels(self):
    with pytest.raises(ValueError, match="loud"):
      create_log_levels("info,worker=loud")

  def test_set_log_level(self):
    set_log_levels("warning")
    set_log_level("stats", "debug")
    assert get_log_levels() == {"default": "WARNING", "stats": "DEBUG"}

  def test_logging_config_silences_third_party_loggers(self):
    config = create_logging_config({"default": "DEBUG"}, FORMAT)
    assert config["loggers"]["httpx"]["level"] == "WARNING"
    assert config["loggers"]["worker"]["level"] == "DEBUG"
    assert config["root"]["level"] == "DEBUG"

  def test_configured_loggers_are_the_ones_in_use(self):
    config = create_logging_config({"default": "INFO"}, FORMAT)
    assert set(config["loggers"]) == {
      "asyncio",
      "httpx",
      "httpcore",
      "cli",
      "dispatcher",
      "worker",
      "rate_limiter",
      "gate",
      "timer",
      "stats",
      "submitter",
    }

  def test_logging_can_be_disabled(self):
    with patch.dict(os.environ, {"SURGE_LOGGING": "0"}):
      assert "loggers" not in get_logging_config()

  def test_trace_only_logs_when_enabled(self, caplog):
    logger = logging.getLogger("surge-trace-test")
    logger.setLevel(logging.DEBUG)
    trace(logger, "hidden")
    assert "hidden" not in caplog.text

    logger.setLevel(TRACE)
    with caplog.at_level(TRACE, logger="surge-trace-test"):
      trace(logger, "document %s successfully broadcast", "abc")
    assert "document abc successfully broadcast" in caplog.text


class TestFormatter:
  def make_record(self, level):
    return logging.LogRecord("dispatcher", level, __file__, 1, "broadcasting %d documents", (3,), None)

  def test_short_level_label(self):
    formatter = Formatter("%(label)s %(name)s %(message)s", log_colors={})
    output = formatter.format(self.make_record(logging.WARNING))

    assert output.startswith("WARN ")
    assert "broadcasting 3 documents" in output

  def test_record_is_left_untouched(self):
    formatter = Formatter("%(asctime)s %(name)s %(message)s")
    record = self.make_record(logging.INFO)
    formatter.format(record)

    assert record.name == "dispatcher"

  def test_time_has_millisecond_precision(self):
    record = self.make_record(logging.INFO)
    record.created = 0.5
    assert Formatter("%(message)s").formatTime(record) == "1970-01-01T00:00:00.500Z"
