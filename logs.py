# logs.py
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Union

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)

_EXTRA_FIELDS = ("checkout_mode", "checkout_kind", "invoice_id", "account_id")


def _redact_pii(text: str) -> str:
  return EMAIL_RE.sub("***", text)


class JsonFormatter(logging.Formatter):
  """Render a record as a single JSON line, with e-mail addresses redacted."""

  def format(self, record: logging.LogRecord) -> str:
    data: Dict[str, Any] = {
      "ts": datetime.now(timezone.utc).isoformat(),
      "level": record.levelname,
      "logger": record.name,
      "msg": _redact_pii(record.getMessage()),
    }
    for field in _EXTRA_FIELDS:
      value = getattr(record, field, None)
      if value is not None:
        data[field] = value
    if record.exc_info:
      data["exc"] = _redact_pii(self.formatException(record.exc_info))
    return json.dumps(data)


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
  handler = logging.StreamHandler()
  handler.setFormatter(JsonFormatter())

  root = logging.getLogger()
  root.handlers.clear()
  root.addHandler(handler)
  root.setLevel(level)
