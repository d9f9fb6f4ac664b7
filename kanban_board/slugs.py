"""Column slug helper, shared by the server and the board client."""

import re
import unicodedata

# Default columns every board starts with. Identified by slug; never deletable.
DEFAULT_COLUMNS = (
    {"slug": "todo", "title": "To Do", "color": "#e6f4ff"},
    {"slug": "doing", "title": "Doing", "color": "#fff8e6"},
    {"slug": "done", "title": "Done", "color": "#e6ffe6"},
)
PROTECTED_SLUGS = frozenset(c["slug"] for c in DEFAULT_COLUMNS)


def slugify(value):
    """Convert a title to a URL-safe slug: lowercase, only a-z 0-9 and hyphens."""
    value = unicodedata.normalize("NFKD", value or "")
    value = value.encode("ascii", "ignore").decode("ascii").lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)   # strip non-alphanumeric
    value = re.sub(r"[\s-]+", "-", value)          # collapse whitespace/hyphens
    return value.strip("-")


def is_protected(slug):
    return slug in PROTECTED_SLUGS
