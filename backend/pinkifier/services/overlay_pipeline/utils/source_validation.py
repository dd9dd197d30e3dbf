# backend/pinkifier/services/overlay_pipeline/utils/source_validation.py
"""
Source Validation Utilities - URL, allow-list and inline data checks.

Everything here runs before any network I/O so a rejected request can never
turn the service into an open fetch proxy.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from ....constants import ALLOWED_URL_SCHEMES, DATA_URI_PREFIX, INLINE_DATA_PATTERN
from ....enums import LogEmoji, LoggerName, LogSource, SourceKind
from ....exceptions import DomainNotAllowedError, InvalidRequestError
from ...logger import get_service_logger

logger = get_service_logger(LoggerName.OVERLAY_PIPELINE, LogSource.PIPELINE)

_INLINE_DATA_RE = re.compile(INLINE_DATA_PATTERN, re.DOTALL | re.IGNORECASE)
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


@dataclass(frozen=True)
class SourceReference:
    """A validated pointer to the source image."""

    kind: SourceKind
    url: Optional[str] = None
    host: Optional[str] = None
    inline_bytes: Optional[bytes] = None
    media_type: Optional[str] = None

    @property
    def description(self) -> str:
        """Short, log-safe description (never the inline payload)."""
        if self.kind == SourceKind.URL:
            return f"url:{self.host}"
        return f"inline:{self.media_type or 'unknown'} ({len(self.inline_bytes or b'')} bytes)"


class DomainAllowList:
    """
    Hostnames images may be fetched from.

    A host matches an entry when it equals the entry or ends with
    "." + entry, so subdomains match but look-alike hosts do not.
    """

    def __init__(self, domains: Iterable[str]):
        self.domains: List[str] = [
            domain.strip().lower().lstrip(".") for domain in domains if domain.strip()
        ]

    def is_allowed(self, host: Optional[str]) -> bool:
        if not host:
            return False
        host = host.lower().rstrip(".")
        return any(
            host == domain or host.endswith("." + domain) for domain in self.domains
        )

    def __contains__(self, host: str) -> bool:
        return self.is_allowed(host)

    def __repr__(self) -> str:
        return f"DomainAllowList({self.domains!r})"


def is_inline_reference(reference: str) -> bool:
    return reference.lstrip().lower().startswith(DATA_URI_PREFIX)


def validate_image_url(reference: str, allow_list: DomainAllowList) -> SourceReference:
    """
    Validate an absolute http(s) URL against the allow-list.

    Raises:
        InvalidRequestError: Malformed URL or unsupported scheme
        DomainNotAllowedError: Host is not on the allow-list
    """
    try:
        parts = urlsplit(reference.strip())
        host = parts.hostname
        # Accessing port validates it
        parts.port
    except ValueError as e:
        raise InvalidRequestError(f"Invalid URL format: {e}")

    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise InvalidRequestError(
            f"Invalid image URL: scheme must be http or https, got '{parts.scheme or 'none'}'"
        )
    if not host:
        raise InvalidRequestError("Invalid image URL: missing hostname")
    if parts.username or parts.password:
        raise InvalidRequestError("Invalid image URL: credentials are not allowed")

    if not allow_list.is_allowed(host):
        logger.warning(
            f"Rejected image host '{host}'",
            extra_context={"host": host},
            emoji=LogEmoji.SECURITY,
        )
        raise DomainNotAllowedError(f"Image domain '{host}' is not allowed")

    return SourceReference(kind=SourceKind.URL, url=reference.strip(), host=host.lower())


def decode_inline_data(
    reference: str, max_bytes: int, allow_bare_base64: bool = False
) -> SourceReference:
    """
    Decode a data: URI (or, optionally, bare base64) into image bytes.

    Raises:
        InvalidRequestError: Malformed encoding, empty or oversized payload
    """
    text = reference.strip()
    media_type: Optional[str] = None

    match = _INLINE_DATA_RE.match(text)
    if match:
        media_type = match.group(1)
        payload = match.group(3)
    elif is_inline_reference(text):
        raise InvalidRequestError("Inline image data must be base64-encoded")
    elif allow_bare_base64:
        payload = text
    else:
        raise InvalidRequestError("Image reference is neither a URL nor inline data")

    # Tolerate line-wrapped payloads
    payload = re.sub(r"\s+", "", payload)
    if not payload:
        raise InvalidRequestError("Inline image data is empty")

    # Reject early when the decoded size would certainly exceed the limit
    if len(payload) * 3 // 4 > max_bytes + 2:
        raise InvalidRequestError(
            f"Inline image data exceeds the {max_bytes} byte limit"
        )

    if not _BASE64_RE.match(payload):
        raise InvalidRequestError("Inline image data is not valid base64")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError(f"Inline image data is not valid base64: {e}")

    if not data:
        raise InvalidRequestError("Inline image data is empty")
    if len(data) > max_bytes:
        raise InvalidRequestError(
            f"Inline image data exceeds the {max_bytes} byte limit"
        )

    return SourceReference(
        kind=SourceKind.INLINE, inline_bytes=data, media_type=media_type
    )


def validate_source_reference(
    reference: Optional[str],
    allow_list: DomainAllowList,
    max_inline_bytes: int,
    allow_bare_base64: bool = False,
) -> SourceReference:
    """
    Validate the caller's image reference.

    Raises:
        InvalidRequestError: Missing, malformed or unsupported reference
        DomainNotAllowedError: URL host is not on the allow-list
    """
    if reference is None or not reference.strip():
        raise InvalidRequestError("Image URL is required")

    if is_inline_reference(reference):
        return decode_inline_data(reference, max_inline_bytes, allow_bare_base64)

    try:
        scheme = urlsplit(reference.strip()).scheme.lower()
    except ValueError as e:
        raise InvalidRequestError(f"Invalid URL format: {e}")

    if scheme:
        return validate_image_url(reference, allow_list)

    if allow_bare_base64:
        return decode_inline_data(reference, max_inline_bytes, allow_bare_base64)

    raise InvalidRequestError("Invalid image URL: must be an absolute http(s) URL")
