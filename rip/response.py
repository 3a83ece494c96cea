"""Response - Read surface over the outcome of one dispatch.

A Response is created fresh for every Client.do() call (including replays).
It never raises from its accessors; failures are carried on `error`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import httpx

from rip.codec import Ref
from rip.errors import BodyReadError, DecodeError, RipError

if TYPE_CHECKING:
    from rip.client import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """Outcome of one HTTP call made by a Client.

    status_code is None when no transport response was obtained. headers is
    always an httpx.Headers (empty when there was no response).
    """

    client: Client
    body: bytes = b""
    error: RipError | None = None
    status_code: int | None = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    read_error: BodyReadError | None = None

    @classmethod
    def capture(cls, client: Client, http_response: httpx.Response) -> Response:
        """Drain and close http_response, returning a Response over it.

        A failure while reading the body leaves error unset and body empty;
        the failure is kept on read_error.
        """
        body = b""
        read_error: BodyReadError | None = None
        try:
            body = http_response.read()
        except (httpx.HTTPError, httpx.StreamError) as e:
            read_error = BodyReadError(f"Failed to read response body: {e}", e)
            logger.warning("Reading response body failed: %s", e)
        finally:
            http_response.close()

        return cls(
            client=client,
            body=body,
            status_code=http_response.status_code,
            headers=httpx.Headers(http_response.headers),
            read_error=read_error,
        )

    @property
    def ok(self) -> bool:
        """True if there is no error and the status is 2xx."""
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300

    def raw_into(self, into: bytearray | Ref[bytes]) -> Response:
        """Copy the body into a caller-owned bytearray or Ref."""
        if isinstance(into, Ref):
            into.value = self.body
        else:
            into[:] = self.body
        return self

    def status_into(self, status: Ref[int]) -> Response:
        """Write the status code into status. No-op if there was no response."""
        if self.status_code is not None:
            status.value = self.status_code
        return self

    def decode_into(self, target: Any) -> Response:
        """Decode the JSON body into target.

        If this Response already carries an error, nothing is decoded and self
        is returned. A decode failure returns a new Response carrying it.
        """
        if self.error is not None:
            return self

        try:
            self.client.codec.unmarshal(self.body, target)
        except DecodeError as e:
            return replace(self, error=e)
        return self

    def json(self) -> Any:
        """Return the body parsed as JSON.

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        return self.client.codec.loads(self.body)

    def raise_for_error(self) -> Response:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error
        return self

    def replay(self, *targets: Any, timeout: float | None = None) -> Response:
        """Perform the same call again with the originating Client."""
        return self.client.do(*targets, timeout=timeout)

    do = replay
