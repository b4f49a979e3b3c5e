# redirect.py
from typing import Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

PAID_MARKER = ("paid", "1")
# the session id rides along with the marker on the success URL
_STRIPPED = {"paid", "session_id"}


def has_paid_marker(url: str) -> bool:
  try:
    query = urlsplit(url or "").query
  except ValueError:
    return False
  return PAID_MARKER in parse_qsl(query, keep_blank_values=True)


def strip_paid_marker(url: str) -> str:
  try:
    parts = urlsplit(url or "")
  except ValueError:
    return url
  kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in _STRIPPED]
  return urlunsplit(parts._replace(query=urlencode(kept)))


def consume_paid_marker(url: str) -> Tuple[bool, str]:
  """Return whether ``url`` carries ``paid=1`` and the URL with it removed."""
  if not has_paid_marker(url):
    return False, url
  return True, strip_paid_marker(url)
