"""
Console formatter for surge.

Level labels have a fixed width and the timestamp and logger name are dimmed,
so progress and summary lines stand out during a long run. Use `%(label)s`
in the format string for the short level label.
"""

from datetime import datetime, UTC

from colorlog import ColoredFormatter

LEVEL_LABELS = {
  "TRACE": "TRACE",
  "DEBUG": "DEBUG",
  "INFO": "INFO",
  "WARNING": "WARN",
  "ERROR": "ERROR",
  "CRITICAL": "CRIT",
}


class Formatter(ColoredFormatter):
  DIM = "\033[38;5;245m"
  RESET = "\033[0m"

  def format(self, record):
    record.label = LEVEL_LABELS.get(record.levelname, record.levelname)
    return super().format(record)

  def formatTime(self, record, datefmt=None) -> str:
    try:
      dt = datetime.fromtimestamp(record.created, UTC)
      if datefmt:
        return dt.strftime(datefmt)
      return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    except Exception:
      # datetime may already be torn down at interpreter exit
      return f"{record.created:.3f}"

  def formatMessage(self, record) -> str:
    name = record.name
    try:
      record.name = f"{self.DIM}{name}{self.RESET}"
      record.asctime = f"{self.DIM}{self.formatTime(record, self.datefmt)}{self.RESET}"
      return super().formatMessage(record)
    finally:
      record.name = name
