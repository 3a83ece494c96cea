"""Client - Immutable builder for JSON REST calls.

Every with_* method (and every verb helper) returns a new Client; the
receiver is never changed. This makes it safe to keep a configured "base"
client around and derive many calls from it, from any number of threads:

    api = rip.new("http://localhost/api/v1").with_header("Token", "t").with_append_slash(True)

    product = {}
    status = Ref(0)
    response = api.get("product", 1).do(product).status_into(status)
    if response.error is not None:
        ...

The call above hits http://localhost/api/v1/product/1/, decodes the JSON
body into `product` and writes the HTTP status into `status.value`.

URL resolution:
    base URL  +  joined path parts  (+ trailing "/" if append_slash)  +  query

Path parts accumulate across with_path()/verb calls. Query values accumulate
across with_query_values() calls until reset with None.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from rip.codec import JsonCodec
from rip.errors import (
    ConfigurationError,
    HookError,
    RipError,
    SerializationError,
    TransportError,
)
from rip.response import Response
from rip.utils import (
    QueryValues,
    copy_headers,
    encode_query,
    ensure_trailing_slash,
    merge_values,
    normalize_path_parts,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "rip-1.0"

# Seconds. Applied per request via request.extensions["timeout"].
DEFAULT_TIMEOUT = 30.0

TransportFactory = Callable[[], httpx.Client]
BeforeSend = Callable[[httpx.Request], None]


def fresh_transport() -> httpx.Client:
    """Default transport factory: a new httpx.Client for every call."""
    return httpx.Client(follow_redirects=True)


def _directory(url: httpx.URL) -> httpx.URL:
    """Return url with its path ending in '/', so it resolves like a directory."""
    return url.copy_with(path=ensure_trailing_slash(url.path))


class Client(BaseModel):
    """Immutable description of one HTTP call.

    Use rip.new() rather than constructing this directly.

    transport is either a zero-argument factory returning a fresh httpx.Client
    (closed after each call), or a shared httpx.Client (left open; use this
    for connection pooling).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    base: httpx.URL = Field(default_factory=httpx.URL, description="Base URL; path parts resolve against it")
    path_parts: tuple[str, ...] = Field(default=(), description="Normalized path segments, in order")
    method: str = Field(default="GET", description="HTTP method")
    headers: httpx.Headers = Field(default_factory=httpx.Headers, description="Request headers")
    query_values: QueryValues = Field(default_factory=dict, description="Query key -> ordered values")
    data: bytes = Field(default=b"", description="Request body")
    append_slash: bool = Field(default=False, description="Force a trailing '/' on the resolved path")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header value")
    transport: TransportFactory | httpx.Client = Field(default=fresh_transport)
    before_send: BeforeSend | None = Field(default=None, description="Called with the request before sending")
    codec: JsonCodec = Field(default_factory=JsonCodec)
    timeout: float | None = Field(default=DEFAULT_TIMEOUT, description="Per-request timeout in seconds")
    base_error: ConfigurationError | None = Field(default=None, description="Set when the base URL failed to parse")
    data_error: SerializationError | None = Field(default=None, description="Set when data failed to serialize")

    # -------------------------------------------------------------------------
    # Configuration side-channel
    # -------------------------------------------------------------------------

    @property
    def config_errors(self) -> tuple[RipError, ...]:
        """Configuration failures recorded so far (base URL, data)."""
        return tuple(e for e in (self.base_error, self.data_error) if e is not None)

    @property
    def config_error(self) -> RipError | None:
        """First recorded configuration failure, or None."""
        errors = self.config_errors
        return errors[0] if errors else None

    def raise_for_config(self) -> Client:
        """Raise the first recorded configuration failure, if any."""
        error = self.config_error
        if error is not None:
            raise error
        return self

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def with_base(self, base_url: str) -> Client:
        """Set the base URL. Parse failures are recorded, not raised."""
        try:
            base = httpx.URL(base_url)
        except (httpx.InvalidURL, TypeError) as e:
            error = ConfigurationError(f"Invalid base URL {base_url!r}: {e}")
            error.__cause__ = e
            logger.warning("%s", error)
            return self.model_copy(update={"base": httpx.URL(), "base_error": error})

        if self.path_parts:
            base = _directory(base)
        return self.model_copy(update={"base": base, "base_error": None})

    base_url = with_base

    def with_header(self, key: str, value: str) -> Client:
        """Set (overwrite) one header."""
        headers = copy_headers(self.headers)
        headers[key] = value
        return self.model_copy(update={"headers": headers})

    def with_headers(self, headers: Mapping[str, str]) -> Client:
        """Set (overwrite) several headers."""
        result = copy_headers(self.headers)
        for key, value in headers.items():
            result[key] = value
        return self.model_copy(update={"headers": result})

    def with_query_values(self, values: Mapping[str, Any] | None) -> Client:
        """Append query values. None or an empty mapping clears all query values."""
        if not values:
            return self.model_copy(update={"query_values": {}})
        return self.model_copy(update={"query_values": merge_values(self.query_values, values)})

    def with_path(self, *parts: Any) -> Client:
        """Append path segments.

        Parts are stringified and trimmed; empty parts are dropped. Segments
        are appended to the ones from earlier calls.
        """
        segments = normalize_path_parts(parts)
        if not segments:
            return self

        existing = list(self.path_parts)
        if existing:
            existing[-1] = ensure_trailing_slash(existing[-1])

        return self.model_copy(update={
            "base": _directory(self.base),
            "path_parts": tuple(existing + segments),
        })

    def with_method(self, method: str, *parts: Any) -> Client:
        """Set the HTTP method and append path segments."""
        return self.with_path(*parts).model_copy(update={"method": method.upper()})

    def with_data(self, data: Any) -> Client:
        """Set the request body.

        bytes-like values are used verbatim, str is UTF-8 encoded, readable
        streams are drained, anything else is serialized to JSON. A failure
        leaves the body empty and is recorded on data_error.
        """
        try:
            if isinstance(data, (bytes, bytearray, memoryview)):
                body = bytes(data)
            elif isinstance(data, str):
                body = data.encode("utf-8")
            elif hasattr(data, "read"):
                body = self._drain(data)
            else:
                body = self.codec.marshal(data)
        except SerializationError as e:
            logger.warning("Request data discarded: %s", e)
            return self.model_copy(update={"data": b"", "data_error": e})

        return self.model_copy(update={"data": body, "data_error": None})

    @staticmethod
    def _drain(stream: Any) -> bytes:
        try:
            content = stream.read()
        except (OSError, ValueError) as e:
            raise SerializationError(f"Cannot read request data stream: {e}") from e
        if isinstance(content, str):
            return content.encode("utf-8")
        return bytes(content or b"")

    def with_user_agent(self, agent: str) -> Client:
        return self.model_copy(update={"user_agent": agent})

    def with_append_slash(self, append: bool) -> Client:
        return self.model_copy(update={"append_slash": append})

    def with_transport(self, transport: TransportFactory | httpx.Client) -> Client:
        """Set the transport: a factory (fresh client per call) or a shared httpx.Client."""
        if not isinstance(transport, httpx.Client) and not callable(transport):
            raise TypeError(f"transport must be an httpx.Client or a factory, got {type(transport).__name__}")
        return self.model_copy(update={"transport": transport})

    def with_before_send(self, hook: BeforeSend | None) -> Client:
        return self.model_copy(update={"before_send": hook})

    def with_codec(self, codec: JsonCodec) -> Client:
        return self.model_copy(update={"codec": codec})

    def with_timeout(self, timeout: float | None) -> Client:
        return self.model_copy(update={"timeout": timeout})

    # -------------------------------------------------------------------------
    # HTTP verbs
    # -------------------------------------------------------------------------

    def get(self, *parts: Any) -> Client:
        return self.with_method("GET", *parts)

    def post(self, *parts: Any) -> Client:
        return self.with_method("POST", *parts)

    def put(self, *parts: Any) -> Client:
        return self.with_method("PUT", *parts)

    def patch(self, *parts: Any) -> Client:
        return self.with_method("PATCH", *parts)

    def delete(self, *parts: Any) -> Client:
        return self.with_method("DELETE", *parts)

    def head(self, *parts: Any) -> Client:
        return self.with_method("HEAD", *parts)

    def options(self, *parts: Any) -> Client:
        return self.with_method("OPTIONS", *parts)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_url(self) -> httpx.URL:
        """Compute the full request URL.

        Joins path parts in order. With append_slash the joined path ends in
        a single '/' (or, with no path parts, the base path does). The path
        resolves against the base per RFC 3986, then the query is replaced
        with the encoded query values (sorted keys).
        """
        base = self.base
        path = "".join(self.path_parts)

        if self.append_slash:
            if path:
                path = ensure_trailing_slash(path)
            else:
                base = _directory(base)

        # A colon in the first segment would read as a scheme.
        if ":" in path.split("/", 1)[0]:
            path = "./" + path
        url = base.join(path) if path else base

        query = encode_query(self.query_values)
        return url.copy_with(query=query.encode("ascii") if query else None)

    def build_request(self, timeout: float | None = None) -> httpx.Request:
        """Materialize the request.

        User-Agent is always set from user_agent, overriding any header of
        the same name.
        """
        headers = copy_headers(self.headers)
        headers["User-Agent"] = self.user_agent

        effective_timeout = timeout if timeout is not None else self.timeout
        return httpx.Request(
            self.method,
            self.resolve_url(),
            headers=headers,
            content=self.data or None,
            extensions={"timeout": httpx.Timeout(effective_timeout).as_dict()},
        )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def do(self, *targets: Any, timeout: float | None = None) -> Response:
        """Perform the call and decode the JSON body into each target.

        Never raises for call failures; check Response.error. Decoding stops
        at the first target that fails.

        Args:
            *targets: Decode targets (dict, list, Ref, or pydantic model instance).
            timeout: Overrides the client timeout for this call only.

        Returns:
            A new Response referencing this Client.
        """
        if self.base_error is not None:
            return Response(client=self, error=self.base_error)

        request = self.build_request(timeout)

        if self.before_send is not None:
            try:
                self.before_send(request)
            except Exception as e:
                error = HookError(f"before_send hook failed: {e}")
                error.__cause__ = e
                return Response(client=self, error=error)

        logger.debug("%s %s", request.method, request.url)

        transport, owned = self._acquire_transport()
        try:
            try:
                http_response = transport.send(request, stream=True)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.info("%s %s failed: %s", request.method, request.url, e)
                return Response(
                    client=self,
                    error=TransportError(f"{request.method} {request.url} failed: {e}", e),
                )
            response = Response.capture(self, http_response)
        finally:
            if owned:
                transport.close()

        logger.debug("%s %s -> %d", request.method, request.url, response.status_code)

        for target in targets:
            response = response.decode_into(target)
        return response

    def from_response(self, http_response: httpx.Response) -> Response:
        """Wrap an httpx.Response obtained elsewhere (body is drained and closed)."""
        return Response.capture(self, http_response)

    def _acquire_transport(self) -> tuple[httpx.Client, bool]:
        """Return (client, owned). Owned clients are closed after the call."""
        if isinstance(self.transport, httpx.Client):
            return self.transport, False
        return self.transport(), True


def new(base_url: str | None = None) -> Client:
    """Create a Client: GET, no path, no query, default user agent.

    The base URL is kept as given: rip.new("http://h/api/v1") resolves to
    http://h/api/v1 until a path is added or append_slash is set.

        rip.new("http://localhost")

    is equal to

        rip.new().with_base("http://localhost")
    """
    client = Client()
    if base_url is not None:
        client = client.with_base(base_url)
    return client.with_method("GET")
