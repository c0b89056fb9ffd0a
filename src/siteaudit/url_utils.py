"""URL helpers used for deduplication and link classification."""

from typing import Iterable
from urllib.parse import urljoin, urlsplit


class MalformedURLError(ValueError):
    """Raised when a URL cannot be parsed."""

    def __init__(self, url, reason: str = "unparseable URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed URL {url!r}: {reason}")


def _validate(url) -> str:
    if not isinstance(url, str) or not url.strip():
        raise MalformedURLError(url, "empty URL")
    try:
        parts = urlsplit(url)
        # Accessing .port validates the netloc (e.g. a non-numeric port)
        parts.port
    except ValueError as e:
        raise MalformedURLError(url, str(e)) from e
    return url


def normalize(url: str) -> str:
    """Return the canonical form of a URL used for dedup and the link graph.

    Only the fragment is stripped; everything before the first ``#`` is
    kept byte for byte, so ``normalize(normalize(u)) == normalize(u)``.

    Raises:
        MalformedURLError: If the URL is empty or cannot be parsed
    """
    return _validate(url).split("#", 1)[0]


def resolve(href: str, base_url: str) -> str:
    """Resolve a possibly-relative href against the page URL.

    Raises:
        MalformedURLError: If either URL cannot be parsed
    """
    _validate(base_url)
    if not isinstance(href, str):
        raise MalformedURLError(href, "href is not a string")
    try:
        joined = urljoin(base_url, href.strip())
    except ValueError as e:
        raise MalformedURLError(href, str(e)) from e
    return _validate(joined)


def hostname_of(url: str) -> str:
    """Lower-cased hostname of a URL ('' when it has none)."""
    return urlsplit(_validate(url)).hostname or ""


def is_internal(url: str, site_hostname: str) -> bool:
    """Check whether a URL points at the audited site.

    Only hostnames are compared; scheme and port are ignored.
    """
    host = hostname_of(url)
    return bool(host) and host == site_hostname.lower()


def is_http_url(url: str) -> bool:
    """True for absolute http:// and https:// URLs."""
    return urlsplit(_validate(url)).scheme.lower() in ("http", "https")


def is_absolute_href(href: str) -> bool:
    """True when an href names its host (``https://host/...`` or ``//host/...``)."""
    if not href:
        return False
    try:
        parts = urlsplit(href.strip())
    except ValueError:
        return False
    return bool(parts.netloc)


def is_excluded(
    url: str,
    exclude_urls: Iterable[str] = (),
    exclude_patterns: Iterable[str] = (),
) -> bool:
    """Check a URL against the configured exclusion URLs and substrings."""
    for excluded in list(exclude_urls) + list(exclude_patterns):
        if excluded and excluded in url:
            return True
    return False
