# backend/pinkifier/services/overlay_pipeline/acquisition.py
"""
Image Acquisition - ordered strategies for obtaining source image bytes.

Strategies are tried in order; each failure is recorded with its reason and
the next strategy is attempted. A single strategy is never retried. The
default chain is inline data plus one direct fetch. Proxy fetches and the
placeholder image are opt-in via settings.
"""

import base64
import socket
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote, urlsplit

import requests

from ...config import Settings
from ...constants import (
    FETCH_CHUNK_SIZE,
    FETCH_WATCHDOG_POLL_SECONDS,
    PLACEHOLDER_IMAGE_BASE64,
)
from ...enums import LogEmoji, LoggerName, LogSource, SourceKind
from ...exceptions import FetchFailedError, RequestCancelledError
from ..logger import get_service_logger
from .utils.source_validation import SourceReference

logger = get_service_logger(LoggerName.IMAGE_ACQUISITION, LogSource.PIPELINE)


@dataclass
class AcquisitionAttempt:
    """Why one strategy failed."""

    strategy: str
    error: str
    upstream_status: Optional[int] = None


@dataclass
class AcquiredImage:
    """Bytes obtained for a source reference and how they were obtained."""

    data: bytes
    strategy: str
    attempts: List[AcquisitionAttempt] = field(default_factory=list)
    is_placeholder: bool = False


def _raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RequestCancelledError("Image fetch cancelled by the client")


class FetchWatchdog:
    """
    Aborts a streamed response from outside the reading thread.

    A socket read blocks until a full chunk or EOF arrives, so a slow
    upstream can hold the reader past the total deadline. The watchdog
    thread shuts the connection down once the deadline passes or the
    client cancels, which turns the blocked read into an early EOF.
    `tripped` records which of the two happened.
    """

    DEADLINE = "deadline"
    CANCELLED = "cancelled"

    def __init__(
        self,
        response: requests.Response,
        deadline: float,
        cancel_event: Optional[threading.Event] = None,
        poll_interval: float = FETCH_WATCHDOG_POLL_SECONDS,
    ):
        self.response = response
        self.deadline = deadline
        self.cancel_event = cancel_event
        self.poll_interval = poll_interval
        self.tripped: Optional[str] = None
        self._done = threading.Event()
        self._thread = threading.Thread(
            target=self._watch, name="fetch-watchdog", daemon=True
        )

    def __enter__(self) -> "FetchWatchdog":
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._done.set()
        self._thread.join()

    def _watch(self) -> None:
        while not self._done.wait(self.poll_interval):
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.tripped = self.CANCELLED
            elif time.monotonic() >= self.deadline:
                self.tripped = self.DEADLINE
            else:
                continue
            self._abort()
            return

    def _abort(self) -> None:
        connection = getattr(self.response.raw, "connection", None)
        sock = getattr(connection, "sock", None)
        if sock is None:
            self.response.close()
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Upstream socket already closed: {e}")


class AcquisitionStrategy(ABC):
    """Base class for a way of obtaining source image bytes."""

    # Fallback strategies are logged as a deliberate degraded branch
    is_fallback: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def supports(self, source: SourceReference) -> bool:
        pass

    @abstractmethod
    def acquire(
        self, source: SourceReference, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        """
        Return the raw image bytes.

        Raises:
            FetchFailedError: The bytes could not be obtained
        """
        pass


class InlineDataStrategy(AcquisitionStrategy):
    """Inline references were already decoded during validation."""

    @property
    def name(self) -> str:
        return "inline"

    def supports(self, source: SourceReference) -> bool:
        return source.kind == SourceKind.INLINE

    def acquire(
        self, source: SourceReference, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        if not source.inline_bytes:
            raise FetchFailedError("Inline image data is empty")
        return source.inline_bytes


class RemoteFetchStrategy(AcquisitionStrategy):
    """
    HTTP GET of the source URL.

    The body is streamed so the size limit is enforced between chunks. A
    FetchWatchdog bounds the body read by the total deadline and aborts it
    when the client cancels, even while a chunk read is blocked.
    """

    def __init__(
        self,
        timeout: Tuple[float, float],
        total_deadline: float,
        user_agent: str,
        max_bytes: int,
        follow_redirects: bool = False,
        chunk_size: int = FETCH_CHUNK_SIZE,
    ):
        self.timeout = timeout
        self.total_deadline = total_deadline
        self.user_agent = user_agent
        self.max_bytes = max_bytes
        self.follow_redirects = follow_redirects
        self.chunk_size = chunk_size

    @property
    def name(self) -> str:
        return "direct"

    def supports(self, source: SourceReference) -> bool:
        return source.kind == SourceKind.URL and bool(source.url)

    def target_url(self, source: SourceReference) -> str:
        return source.url or ""

    def acquire(
        self, source: SourceReference, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        _raise_if_cancelled(cancel_event)
        url = self.target_url(source)
        started = time.monotonic()

        logger.debug(f"Fetching image via {self.name}: {source.host}", emoji=LogEmoji.FETCH)

        try:
            response = requests.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent, "Accept": "image/*"},
                stream=True,
                allow_redirects=self.follow_redirects,
            )
        except requests.exceptions.Timeout:
            raise FetchFailedError(
                f"Timed out fetching image after {self.timeout[1]:g}s"
            )
        except requests.exceptions.RequestException as e:
            raise FetchFailedError(f"Failed to fetch image: {type(e).__name__}")

        try:
            status_code = response.status_code
            if not 200 <= status_code < 300:
                raise FetchFailedError(
                    f"Failed to fetch image (HTTP {status_code})",
                    upstream_status=status_code,
                )
            data = self._read_body(response, started, cancel_event)
        finally:
            response.close()

        logger.debug(
            f"Fetched {len(data)} bytes in {(time.monotonic() - started) * 1000:.0f}ms",
            extra_context={"host": source.host, "strategy": self.name},
            emoji=LogEmoji.FETCH,
        )
        return data

    def _read_body(
        self,
        response: requests.Response,
        started: float,
        cancel_event: Optional[threading.Event],
    ) -> bytes:
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            raise FetchFailedError(
                f"Image is too large ({declared} bytes, limit {self.max_bytes})"
            )

        buffer = bytearray()
        read_error: Optional[Exception] = None
        with FetchWatchdog(
            response, started + self.total_deadline, cancel_event
        ) as watchdog:
            try:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    _raise_if_cancelled(cancel_event)
                    if time.monotonic() - started > self.total_deadline:
                        raise FetchFailedError(
                            f"Timed out fetching image after {self.total_deadline:g}s"
                        )
                    if chunk:
                        buffer.extend(chunk)
                    if len(buffer) > self.max_bytes:
                        raise FetchFailedError(
                            f"Image is too large (limit {self.max_bytes} bytes)"
                        )
            except (requests.exceptions.RequestException, OSError) as e:
                read_error = e

        # An aborted read ends in an error or a truncated body
        if watchdog.tripped == FetchWatchdog.CANCELLED:
            raise RequestCancelledError("Image fetch cancelled by the client")
        if watchdog.tripped == FetchWatchdog.DEADLINE:
            raise FetchFailedError(
                f"Timed out fetching image after {self.total_deadline:g}s"
            )
        if read_error is not None:
            raise FetchFailedError(
                f"Failed to read image body: {type(read_error).__name__}"
            )

        if not buffer:
            raise FetchFailedError("Upstream returned an empty body")
        return bytes(buffer)


class ProxyFetchStrategy(RemoteFetchStrategy):
    """Fetch through a relay whose URL template contains "{url}"."""

    def __init__(self, template: str, **kwargs):
        super().__init__(**kwargs)
        self.template = template

    @property
    def name(self) -> str:
        return f"proxy:{urlsplit(self.template).hostname or 'unknown'}"

    def target_url(self, source: SourceReference) -> str:
        return self.template.format(url=quote(source.url or "", safe=""))


class PlaceholderStrategy(AcquisitionStrategy):
    """Embedded placeholder image served when every fetch failed."""

    is_fallback = True

    def __init__(self, placeholder_base64: str = PLACEHOLDER_IMAGE_BASE64):
        self._data = base64.b64decode(placeholder_base64)

    @property
    def name(self) -> str:
        return "placeholder"

    def supports(self, source: SourceReference) -> bool:
        return source.kind == SourceKind.URL

    def acquire(
        self, source: SourceReference, cancel_event: Optional[threading.Event] = None
    ) -> bytes:
        _raise_if_cancelled(cancel_event)
        return self._data


class AcquisitionChain:
    """Try strategies in order, recording every failure."""

    def __init__(self, strategies: Sequence[AcquisitionStrategy]):
        self.strategies = list(strategies)

    @property
    def strategy_names(self) -> List[str]:
        return [strategy.name for strategy in self.strategies]

    def acquire(
        self, source: SourceReference, cancel_event: Optional[threading.Event] = None
    ) -> AcquiredImage:
        """
        Obtain bytes for source.

        Raises:
            FetchFailedError: Every applicable strategy failed; the message
                lists each attempt. upstream_status is the first one seen.
            RequestCancelledError: The client went away
        """
        attempts: List[AcquisitionAttempt] = []

        for strategy in self.strategies:
            if not strategy.supports(source):
                continue
            _raise_if_cancelled(cancel_event)

            try:
                data = strategy.acquire(source, cancel_event)
            except RequestCancelledError:
                raise
            except FetchFailedError as e:
                attempts.append(
                    AcquisitionAttempt(strategy.name, e.message, e.upstream_status)
                )
                logger.warning(
                    f"Image acquisition via {strategy.name} failed: {e.message}",
                    extra_context={
                        "strategy": strategy.name,
                        "source": source.description,
                        "status_code": e.upstream_status,
                    },
                    emoji=LogEmoji.FETCH,
                )
                continue

            if strategy.is_fallback:
                logger.warning(
                    f"Serving {strategy.name} image for {source.description} after "
                    f"{len(attempts)} failed attempt(s): "
                    + "; ".join(f"{a.strategy}: {a.error}" for a in attempts),
                    emoji=LogEmoji.FALLBACK,
                )

            return AcquiredImage(
                data=data,
                strategy=strategy.name,
                attempts=attempts,
                is_placeholder=strategy.is_fallback,
            )

        if not attempts:
            raise FetchFailedError(
                f"No acquisition strategy supports {source.kind.value} sources"
            )

        upstream_status = next(
            (a.upstream_status for a in attempts if a.upstream_status is not None),
            None,
        )
        if len(attempts) == 1:
            raise FetchFailedError(attempts[0].error, upstream_status=upstream_status)

        summary = "; ".join(f"{a.strategy}: {a.error}" for a in attempts)
        raise FetchFailedError(
            f"All image sources failed ({summary})", upstream_status=upstream_status
        )


def build_acquisition_chain(settings: Settings) -> AcquisitionChain:
    """Assemble the strategy order described by settings."""
    fetch_options = dict(
        timeout=settings.fetch_timeout,
        total_deadline=settings.fetch_total_deadline_seconds,
        user_agent=settings.fetch_user_agent,
        max_bytes=settings.max_image_bytes,
        follow_redirects=settings.fetch_follow_redirects,
    )

    strategies: List[AcquisitionStrategy] = [
        InlineDataStrategy(),
        RemoteFetchStrategy(**fetch_options),
    ]
    for template in settings.fetch_proxy_templates_list:
        strategies.append(ProxyFetchStrategy(template, **fetch_options))
    if settings.placeholder_fallback_enabled:
        strategies.append(PlaceholderStrategy())

    return AcquisitionChain(strategies)
