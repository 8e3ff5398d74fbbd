from __future__ import annotations

import re
from urllib.parse import parse_qs, urlencode, urlparse


def strip_url_whitespace(url: str) -> str:
    return re.sub(r"\s+", "", url or "")


def is_mixed_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
    except ValueError:
        return False
    return bool(query.get("v")) and bool(query.get("list"))


def strip_list_param(url: str) -> str:
    try:
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        for param in ("list", "index", "start"):
            query.pop(param, None)
        new_query = urlencode(query, doseq=True)
        return parsed._replace(query=new_query).geturl()
    except ValueError:
        return url


def normalize_source_url(url: str) -> str:
    clean = strip_url_whitespace(url)
    # The service extracts a single video; drop the playlist context.
    if is_mixed_url(clean):
        return strip_list_param(clean)
    return clean
