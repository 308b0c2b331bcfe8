"""OpenAI-compatible chat/completions client."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Iterator

import httpx

from xa_cli.config.config import Config
from xa_cli.core.exceptions import (
    AuthError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
    ServerError,
)

logger = logging.getLogger(__name__)

# Retry configuration
RATE_LIMIT_DELAY = 2.0  # seconds, when the server sends no Retry-After
RATE_LIMIT_MAX_DELAY = 10.0  # seconds

SSE_DONE = "[DONE]"


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from an error response body."""
    try:
        response.read()
    except httpx.HTTPError:
        return ""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return ""


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def check_status(response: httpx.Response) -> None:
    """Raise the matching CompletionError for a non-2xx response."""
    status = response.status_code
    if 200 <= status < 300:
        return
    detail = _error_detail(response)
    message = f"HTTP {status}" + (f": {detail}" if detail else "")
    if status in (401, 403):
        raise AuthError(f"Authentication failed ({message}). Check your API key with 'xa --set openai'.")
    if status == 429:
        raise RateLimitedError(f"Rate limited ({message})", retry_after=_retry_after(response))
    raise ServerError(f"Server error ({message})", status_code=status)


def extract_message_text(data: Any) -> str:
    """Text of a non-streaming chat/completions body."""
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError(f"Unexpected response shape: {e!r}") from e
    if not isinstance(message, dict):
        raise MalformedResponseError("Unexpected response shape: message is not an object")
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise MalformedResponseError("Unexpected response shape: content is not text")
    return content


def parse_sse_data(data: str) -> tuple[str, bool]:
    """Parse one SSE data payload.

    Returns:
        Tuple of (text delta, finished)

    Raises:
        ValueError: If the payload is not a well-formed delta
        ServerError: If the payload reports an error
    """
    event = json.loads(data)
    if not isinstance(event, dict):
        raise ValueError("event is not an object")
    if "error" in event:
        error = event["error"]
        detail = error.get("message") if isinstance(error, dict) else error
        raise ServerError(f"Stream error: {detail}")
    choices = event.get("choices")
    if not isinstance(choices, list):
        raise ValueError("event has no choices")
    if not choices:
        # Usage-only events carry no choices
        return "", False
    choice = choices[0]
    if not isinstance(choice, dict):
        raise ValueError("choice is not an object")
    delta = choice.get("delta") or {}
    if not isinstance(delta, dict):
        raise ValueError("delta is not an object")
    content = delta.get("content") or ""
    if not isinstance(content, str):
        raise ValueError("delta content is not text")
    return content, choice.get("finish_reason") is not None


class CompletionStream:
    """Lazy sequence of text chunks for one completion request.

    Iterating opens the request; ``close()`` releases the connection at any
    point. ``used_streaming`` tells whether the server actually streamed.
    """

    def __init__(self, client: "CompletionClient", payload: dict[str, Any]):
        self._client = client
        self._payload = payload
        self.used_streaming: bool = bool(payload.get("stream"))
        self._gen = self._generate()

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        return next(self._gen)

    def close(self) -> None:
        self._gen.close()

    def _generate(self) -> Iterator[str]:
        retried = False
        while True:
            try:
                yield from self._request()
                return
            except RateLimitedError as e:
                if retried or not self._client.retry_on_rate_limit:
                    raise
                retried = True
                delay = min(e.retry_after if e.retry_after is not None else RATE_LIMIT_DELAY,
                            RATE_LIMIT_MAX_DELAY)
                logger.warning(f"Rate limited, retrying in {delay:.1f}s...")
                time.sleep(delay)

    def _request(self) -> Iterator[str]:
        http = self._client.http
        try:
            with http.stream("POST", self._client.url("chat/completions"), json=self._payload) as response:
                check_status(response)
                content_type = response.headers.get("content-type", "")
                if self._payload.get("stream") and content_type.startswith("text/event-stream"):
                    yield from self._iter_events(response)
                    return

                # Non-streaming request, or a server that ignored stream=true
                if self._payload.get("stream"):
                    logger.debug(f"Expected event stream, got {content_type!r}; reading as batch")
                self.used_streaming = False
                response.read()
                try:
                    data = response.json()
                except ValueError as e:
                    raise MalformedResponseError(f"Response is not JSON: {e}") from e
                yield extract_message_text(data)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Connection failed: {e}") from e

    def _iter_events(self, response: httpx.Response) -> Iterator[str]:
        finished = False
        for line in response.iter_lines():
            line = line.strip()
            if not line or line.startswith(":") or not line.startswith("data:"):
                continue
            data = line[5:].strip()
            if data == SSE_DONE:
                return
            try:
                content, done = parse_sse_data(data)
            except ValueError as e:
                logger.debug(f"Skipping malformed stream event ({e}): {data[:200]!r}")
                continue
            finished = finished or done
            if content:
                yield content
        if not finished:
            raise NetworkError("Stream closed before the end-of-stream signal")


class CompletionClient:
    """Client for an OpenAI-compatible chat/completions endpoint.

    The credential is sent as a bearer token and never logged.

    Usage:
        with CompletionClient.from_config(config) as client:
            for chunk in client.complete("Say hi", model="gpt-4o-mini"):
                print(chunk, end="")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        connect_timeout: float = 10.0,
        read_timeout: float = 120.0,
        retry_on_rate_limit: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.retry_on_rate_limit = retry_on_rate_limit
        self.http = httpx.Client(
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            # read is also the idle limit between stream chunks
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "CompletionClient":
        return cls(
            base_url=config.base_url,
            api_key=config.api_key,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            retry_on_rate_limit=config.retry_on_rate_limit,
            **kwargs,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def complete(self, prompt: str, model: str, stream: bool = True) -> CompletionStream:
        """Request a completion for a single user message.

        Args:
            prompt: The user message
            model: Model identifier
            stream: Ask the server for incremental chunks

        Returns:
            CompletionStream yielding text chunks (exactly one when not streaming)
        """
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": stream,
        }
        logger.debug(f"POST {self.url('chat/completions')} model={model} stream={stream}")
        return CompletionStream(self, payload)

    def list_models(self) -> list[str]:
        """List model ids from the models endpoint."""
        try:
            response = self.http.get(self.url("models"))
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Connection failed: {e}") from e
        check_status(response)
        try:
            data = response.json()
            return [item["id"] for item in data["data"]]
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected models response: {e!r}") from e

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
