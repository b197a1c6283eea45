"""URL validation for link and media edits."""

from urllib.parse import urlsplit

from clonup_editor.exceptions import InputValidationError

_ALLOWED_SCHEMES = frozenset({"", "http", "https", "mailto", "tel"})


def validate_url(value: str, field: str = "href", allow_data: bool = False) -> str:
    """Check a user-supplied URL and return it stripped.

    Accepts http(s), protocol-relative, ``mailto:``, ``tel:``, fragment
    and relative references. ``data:`` URLs only when ``allow_data``.

    Raises:
        InputValidationError: If the value is empty or not an acceptable URL.
    """
    value = (value or "").strip()
    if not value:
        raise InputValidationError(field, "a URL is required")
    if any(ch.isspace() for ch in value):
        raise InputValidationError(field, f"URL must not contain whitespace: {value!r}")

    try:
        parts = urlsplit(value)
    except ValueError as e:
        raise InputValidationError(field, f"malformed URL {value!r}: {e}") from e

    scheme = parts.scheme.lower()
    allowed = _ALLOWED_SCHEMES | {"data"} if allow_data else _ALLOWED_SCHEMES
    if scheme not in allowed:
        raise InputValidationError(field, f"unsupported URL scheme {scheme!r}")
    if scheme in ("http", "https") and not parts.netloc:
        raise InputValidationError(field, f"URL has no host: {value!r}")
    if scheme in ("mailto", "tel") and not parts.path:
        raise InputValidationError(field, f"empty {scheme} address")
    return value
