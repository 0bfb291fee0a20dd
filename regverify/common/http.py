"""HTTP client with per-request timeouts and typed failures."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from regverify.common.constants import USER_AGENT
from regverify.common.errors import LookupTimeout, UpstreamError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 15.0
    read: float = 15.0
    # Wall-clock cap on the whole exchange, body included.
    total: float | None = None

    @classmethod
    def uniform(cls, seconds: float) -> "TimeoutConfig":
        return cls(connect=seconds, read=seconds, total=seconds)


class HttpClient:
    """Thin ``requests.Session`` wrapper.

    Each call is a single attempt. Retry policy belongs to the caller, so a
    ``requests.Timeout`` surfaces as ``LookupTimeout`` and every other transport
    or status failure as ``UpstreamError``.
    """

    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status >= 400:
            raise UpstreamError(f"HTTP status {status} from {url}")

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        req_timeout = timeout or self.timeout
        deadline = time.monotonic() + req_timeout.total if req_timeout.total is not None else None
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=data,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
                stream=True,
            )
        except requests.Timeout as exc:
            raise LookupTimeout(f"No response from {url} within {req_timeout.read}s") from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"Request to {url} failed: {exc}") from exc

        try:
            self._raise_for_status(response, url)
            body = self._read_body(response, url, deadline, req_timeout.total)
        finally:
            response.close()

        try:
            return json.loads(body)
        except ValueError as exc:
            raise UpstreamError(f"Invalid JSON payload from {url}") from exc

    def _read_body(
        self,
        response: requests.Response,
        url: str,
        deadline: float | None,
        total: float | None,
    ) -> bytes:
        """Read the streamed body, giving up once ``deadline`` passes.

        The socket read timeout bounds each wait, not the whole body.
        """
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=8192):
                if deadline is not None and time.monotonic() > deadline:
                    raise LookupTimeout(f"Response from {url} exceeded {total}s")
                chunks.append(chunk)
        except requests.Timeout as exc:
            raise LookupTimeout(f"Response from {url} stalled: {exc}") from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"Reading response from {url} failed: {exc}") from exc
        return b"".join(chunks)

    def post_form_json(
        self,
        url: str,
        *,
        data: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        merged = {"Content-Type": "application/x-www-form-urlencoded"}
        if headers:
            merged.update(headers)
        return self.request_json("POST", url, data=data, headers=merged, timeout=timeout)
