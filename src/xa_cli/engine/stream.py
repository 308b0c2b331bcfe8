"""Consumption of completion chunk streams."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable

from xa_cli.core.datamodels import InvocationResult, StreamStatus
from xa_cli.core.exceptions import XaError

logger = logging.getLogger(__name__)


class CancelToken:
    """Thread-safe flag asking a running stream to stop."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def _close(obj: object) -> None:
    close = getattr(obj, "close", None)
    if callable(close):
        close()


def consume(
    chunks: Iterable[str],
    on_chunk: Callable[[str], None] | None = None,
    cancel_token: CancelToken | None = None,
) -> InvocationResult:
    """Drive a chunk sequence to the end, rendering as it goes.

    Each chunk is appended to the accumulated text and then passed to
    ``on_chunk``. The sequence is always closed on the way out, which
    releases the underlying connection.

    - An error before the first chunk is re-raised: the request failed.
    - An error after the first chunk ends the stream; the partial text is
      returned with status TRUNCATED and the error attached.
    - A cancelled token or Ctrl-C stops reading; the partial text is
      returned with status CANCELLED.

    Args:
        chunks: Lazy sequence of text chunks
        on_chunk: Called with each chunk, in arrival order
        cancel_token: Checked before every chunk is requested

    Returns:
        InvocationResult with the accumulated text and elapsed wall time
    """
    parts: list[str] = []
    status = StreamStatus.COMPLETE
    error: XaError | None = None

    start = time.perf_counter()
    iterator = iter(chunks)
    try:
        while True:
            if cancel_token is not None and cancel_token.cancelled:
                status = StreamStatus.CANCELLED
                break
            try:
                chunk = next(iterator)
            except StopIteration:
                break
            except XaError as e:
                if not parts:
                    raise
                logger.warning(f"Stream interrupted after {len(parts)} chunks: {e}")
                status = StreamStatus.TRUNCATED
                error = e
                break
            parts.append(chunk)
            if on_chunk is not None:
                on_chunk(chunk)
    except KeyboardInterrupt:
        status = StreamStatus.CANCELLED
    finally:
        _close(iterator)
        if iterator is not chunks:
            _close(chunks)
    elapsed = time.perf_counter() - start

    if status is StreamStatus.CANCELLED:
        logger.info(f"Stream cancelled after {len(parts)} chunks")

    return InvocationResult(
        full_text="".join(parts),
        elapsed=elapsed,
        used_streaming=getattr(chunks, "used_streaming", True),
        status=status,
        error=error,
    )
