"""
Domain URL normalization module.

Turns user input into the canonical hostname that identifies a tracked
domain. Input without a scheme is treated as if it had one, and only the
hostname survives: scheme, credentials, port, path, query and fragment are
all dropped.
"""

import re
from urllib.parse import urlsplit

import idna

from .enums import UrlErrorCode
from .exceptions import InvalidUrlError


DEFAULT_SCHEME = "https"

# Anything shaped like "<scheme>://"
SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

# Characters that can never appear in a hostname
FORBIDDEN_HOST_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'           # Control characters
    r'\s'                        # Whitespace
    r'<>^|%\\"\'`{}]'
)


class UrlNormalizer:
    """
    Normalizes raw domain input to a hostname.

    ASCII hostnames keep their case, so comparisons on the result are
    case-sensitive. Hostnames with non-ASCII characters are IDNA-encoded.
    """

    def __init__(self, default_scheme: str = DEFAULT_SCHEME) -> None:
        self._default_scheme = default_scheme

    def normalize(self, raw_url: str) -> str:
        """
        Normalize raw input to its canonical hostname.

        Args:
            raw_url: User input such as "example.com/path" or "https://example.com"

        Returns:
            The hostname, e.g. "example.com"

        Raises:
            InvalidUrlError: If the input cannot be parsed as a URL
        """
        if raw_url is None or not raw_url.strip():
            raise InvalidUrlError(
                code=UrlErrorCode.EMPTY_INPUT.value,
                message="Domain URL is empty",
                details={"raw_input": raw_url},
            )

        candidate = raw_url.strip()
        if not SCHEME_PATTERN.match(candidate):
            candidate = f"{self._default_scheme}://{candidate}"

        try:
            netloc = urlsplit(candidate).netloc
        except ValueError as e:
            raise InvalidUrlError(
                code=UrlErrorCode.MALFORMED.value,
                message=f"Could not parse URL: {e}",
                details={"raw_input": raw_url},
            ) from e

        host = self._extract_host(netloc, raw_url)

        if FORBIDDEN_HOST_CHARS_PATTERN.search(host):
            raise InvalidUrlError(
                code=UrlErrorCode.FORBIDDEN_CHARS.value,
                message="Hostname contains forbidden characters",
                details={
                    "raw_input": raw_url,
                    "forbidden_chars": FORBIDDEN_HOST_CHARS_PATTERN.findall(host),
                },
            )

        if any(ord(c) > 127 for c in host):
            try:
                host = idna.encode(host, uts46=True).decode("ascii")
            except idna.IDNAError as e:
                raise InvalidUrlError(
                    code=UrlErrorCode.IDNA_ERROR.value,
                    message=f"IDNA encoding failed: {e}",
                    details={"raw_input": raw_url, "idna_error": str(e)},
                ) from e

        return host

    def _extract_host(self, netloc: str, raw_url: str) -> str:
        """Strip credentials and port from a netloc, validating the port."""
        hostport = netloc.rpartition("@")[2]

        if hostport.startswith("["):
            # IPv6 literal keeps its brackets
            end = hostport.find("]")
            if end == -1:
                raise InvalidUrlError(
                    code=UrlErrorCode.MALFORMED.value,
                    message="Unterminated IPv6 address",
                    details={"raw_input": raw_url},
                )
            host, port = hostport[: end + 1], hostport[end + 1:].lstrip(":")
        else:
            host, _, port = hostport.partition(":")

        if port and (not port.isdigit() or int(port) > 65535):
            raise InvalidUrlError(
                code=UrlErrorCode.INVALID_PORT.value,
                message=f"Invalid port: {port}",
                details={"raw_input": raw_url, "port": port},
            )

        if not host:
            raise InvalidUrlError(
                code=UrlErrorCode.MISSING_HOST.value,
                message="URL has no hostname",
                details={"raw_input": raw_url},
            )

        return host


_default_normalizer = UrlNormalizer()


def normalize_domain_url(raw_url: str) -> str:
    """Normalize raw input with the default https scheme."""
    return _default_normalizer.normalize(raw_url)
