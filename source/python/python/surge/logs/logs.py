import os
import logging
import logging.config

DEFAULT_LOG_FORMAT = os.getenv(
  "SURGE_LOG_FORMAT", "%(asctime)s %(log_color)s%(label)5s%(reset)s %(name)-14s %(message)s"
)
FORMAT = DEFAULT_LOG_FORMAT + (" [%(pathname)s:%(lineno)d]" if os.getenv("SURGE_LOG_SHOW_SOURCE", False) else "")

# Per-document lines are below DEBUG, as they are emitted once per request.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS = {}
_CONFIGURED = False

LEVELS: dict[str, int] = {
  "critical": logging.CRITICAL,
  "error": logging.ERROR,
  "warning": logging.WARNING,
  "info": logging.INFO,
  "debug": logging.DEBUG,
  "trace": TRACE,
}

SURGE_LOGGERS = [
  "cli",
  "dispatcher",
  "worker",
  "rate_limiter",
  "gate",
  "timer",
  "stats",
  "submitter",
]

THIRD_PARTY_LOGGERS = ["asyncio", "httpx", "httpcore"]


def get_logging_config() -> dict[str, int | bool | dict | str | None]:
  # Disable logging if explicitly set to 0; otherwise, assume it's enabled
  if os.environ.get("SURGE_LOGGING", "1") == "0":
    return {
      "version": 1,
      "disable_existing_loggers": False,
    }

  global LOG_LEVELS
  if not LOG_LEVELS:
    set_log_levels(os.environ.get("SURGE_LOG_LEVELS"))
  return create_logging_config(LOG_LEVELS, FORMAT)


def set_log_level(module_name: str, level: str):
  """
  Set the log level for a specific module.
  """
  global LOG_LEVELS
  if not LOG_LEVELS:
    LOG_LEVELS = create_log_levels(None)
  LOG_LEVELS[module_name] = level.upper()


def set_log_levels(log_levels: str | None):
  global LOG_LEVELS
  LOG_LEVELS = create_log_levels(log_levels)


def get_log_levels() -> dict[str, str]:
  return dict(LOG_LEVELS)


def apply_log_levels(log_levels: str | None):
  """
  Parse the given levels and reconfigure every logger with them.
  """
  global _CONFIGURED
  set_log_levels(log_levels)
  logging.config.dictConfig(get_logging_config())
  _CONFIGURED = True


def create_logging_config(levels: dict, log_format: str) -> dict[str, int | bool | dict | str | None]:
  loggers = {}
  for name in THIRD_PARTY_LOGGERS:
    loggers[name] = {
      "handlers": ["default"],
      "level": levels.get(name, "WARNING"),
      "propagate": False,
    }
  for name in SURGE_LOGGERS:
    loggers[name] = {
      "handlers": ["default"],
      "level": levels.get(name) or levels.get("default"),
      "propagate": False,
    }

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "default": {
        "()": "surge.logs.formatter.Formatter",
        "format": log_format,
        "log_colors": {
          "TRACE": "cyan",
          "DEBUG": "blue",
          "INFO": "green",
          "WARNING": "yellow",
          "ERROR": "red",
          "CRITICAL": "bold_red",
        },
      },
    },
    "handlers": {
      "default": {
        "level": TRACE,
        "formatter": "default",
        "class": "logging.StreamHandler",
      },
    },
    "loggers": loggers,
    "root": {"level": levels.get("default"), "handlers": ["default"]},
  }


def create_log_levels(log_levels: str | None) -> dict[str, str]:
  """
  Create log levels for surge modules
  """
  result = {"default": "INFO"}
  if log_levels is not None:
    # set log levels for each module if defined in the log_levels string
    for level in log_levels.split(","):
      if not level.strip():
        continue
      key_value = level.split("=")
      if len(key_value) == 1:
        result["default"] = _check_level(level.strip())
      else:
        key = key_value[0].strip()
        value = key_value[1].strip()
        result[key] = _check_level(value)

  return result


def _check_level(level: str) -> str:
  if level.lower() not in LEVELS:
    raise ValueError(f"Unknown log level '{level}', expected one of: {', '.join(LEVELS)}")
  return level.upper()


def get_logger(logger_name):
  global _CONFIGURED
  if not _CONFIGURED:
    logging.config.dictConfig(get_logging_config())
    _CONFIGURED = True
  return logging.getLogger(logger_name)


def trace(logger: logging.Logger, msg, *args, **kwargs):
  if logger.isEnabledFor(TRACE):
    logger.log(TRACE, msg, *args, stacklevel=2, **kwargs)
