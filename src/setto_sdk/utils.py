"""URL helpers for Setto SDK."""

from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import parse_qs, quote, urlencode, urlsplit


def percent_encode(value: str) -> str:
    """Percent-encode a single URL component (``/`` included)."""
    return quote(value, safe="")


def build_query(params: Iterable[Tuple[str, Optional[str]]]) -> str:
    """Encode query parameters, skipping ``None`` values."""
    return urlencode(
        [(key, value) for key, value in params if value is not None],
        quote_via=quote,
    )


def split_callback_uri(uri: str) -> Tuple[str, str, Dict[str, str]]:
    """Split a callback URI into ``(scheme, host, query)``.

    Scheme and host are lower-cased. Only the first value of a repeated query
    parameter is kept; blank values are kept as empty strings.
    """
    parts = urlsplit(uri.strip())
    query = {
        key: values[0]
        for key, values in parse_qs(parts.query, keep_blank_values=True).items()
    }
    return parts.scheme.lower(), (parts.hostname or ""), query
