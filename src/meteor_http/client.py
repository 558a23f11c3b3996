"""Synchronous and asynchronous request wrappers for the tool's networking paths.

Both wrappers perform exactly one HTTP request per call on top of httpx:

- proxy environment variables are honoured (``HTTPS_PROXY`` for https URLs,
  ``HTTP_PROXY`` otherwise) unless the caller passes ``proxy`` explicitly;
- a ``User-Agent`` describing the tool (or the release in ``release_context``)
  is sent unless the caller sets one;
- ``use_session_header`` / ``use_auth_header`` attach ``X-Meteor-Session`` and
  ``X-Meteor-Auth`` from the credential store;
- TLS verification is always on and redirects are never followed, since the
  credential headers above would be replayed to whatever origin a redirect
  points at;
- without a callback the call blocks until the response arrives and returns a
  :class:`RequestResult` with parsed ``Set-Cookie`` values, writing back an
  updated session id when the server sends one. With a callback the raw
  ``(error, response, body)`` outcome is delivered and the in-flight handle is
  returned instead.
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Iterator, Mapping, Union, cast

import httpx

from .config import HTTPConfig
from .cookies import parse_set_cookie
from .credentials import CredentialStore, SessionFile
from .exceptions import OfflineError, RequestConfigurationError, ResponseStatusError
from .models import RequestResult
from .request_options import RequestOptions
from .security import AUTH_HEADER, SESSION_HEADER, sanitize_headers
from .user_agent import get_user_agent

logger = logging.getLogger(__name__)

RequestInput = Union[str, httpx.URL, RequestOptions, Mapping[str, Any]]
RequestCallback = Callable[[Union[BaseException, None], Union[httpx.Response, None], Any], None]

STREAM_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class PreparedRequest:
    """Normalized request ready to hand to httpx."""

    method: str
    url: str
    headers: httpx.Headers
    timeout: float
    proxy: str | None = None
    params: Mapping[str, object] | None = None
    content: bytes | str | None = None
    data: Mapping[str, object] | None = None
    json: object | None = None
    body_stream: Any = None
    force_ssl: bool = True
    follow_redirect: bool = False
    binary: bool = False
    use_session_header: bool = False


def _coerce_options(url_or_options: RequestInput) -> RequestOptions:
    if isinstance(url_or_options, RequestOptions):
        return dataclasses.replace(url_or_options)
    if isinstance(url_or_options, Mapping):
        return RequestOptions(**dict(url_or_options))
    return RequestOptions(url=str(url_or_options))


def _normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    clean: dict[str, str] = {}
    for key, value in headers.items():
        clean[str(key)] = str(value)
    return clean


def _as_bytes(chunk: bytes | bytearray | str) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode()
    return bytes(chunk)


def _iter_stream(stream: Any) -> Iterator[bytes]:
    if isinstance(stream, (bytes, bytearray, str)):
        yield _as_bytes(stream)
        return
    read = getattr(stream, "read", None)
    if read is None:
        for chunk in stream:
            yield _as_bytes(chunk)
        return
    while True:
        chunk = read(STREAM_CHUNK_SIZE)
        if not chunk:
            return
        yield _as_bytes(chunk)


async def _aiter_stream(stream: Any) -> AsyncIterator[bytes]:
    if hasattr(stream, "__aiter__"):
        async for chunk in stream:
            yield _as_bytes(chunk)
        return
    for chunk in _iter_stream(stream):
        yield chunk


def _response_body(response: httpx.Response, binary: bool) -> bytes | str:
    return response.content if binary else response.text


class _BaseRequestWrapper:
    default_timeout = 30.0

    def __init__(
        self,
        *,
        config: HTTPConfig | None = None,
        credentials: CredentialStore | None = None,
        timeout: float = default_timeout,
    ) -> None:
        self.config = config or HTTPConfig.from_env()
        self.credentials = credentials if credentials is not None else SessionFile(self.config.session_file)
        self.timeout = timeout
        self._client_kwargs = {
            "timeout": timeout,
            "verify": True,
            "follow_redirects": False,
            "trust_env": False,
        }

    def user_agent(self, release_context: Any = None) -> str:
        return get_user_agent(release_context, tools_version=self.config.tools_version)

    def _build_request_timeout(self, options: RequestOptions) -> float:
        timeout = options.timeout if options.timeout is not None else self.timeout
        if timeout <= 0:
            raise RequestConfigurationError("timeout must be greater than 0")
        return float(timeout)

    def prepare(self, url_or_options: RequestInput, *, callback_mode: bool = False) -> PreparedRequest:
        """Normalize caller input into a :class:`PreparedRequest`.

        Raises :class:`RequestConfigurationError` without touching the network
        or the credential store when the options cannot be honoured.
        """
        options = _coerce_options(url_or_options)
        if options.use_session_header and callback_mode:
            raise RequestConfigurationError("session header can't be used with callback")
        if options.body_stream is not None and options.content is not None:
            raise RequestConfigurationError("body_stream and content are mutually exclusive")

        headers = httpx.Headers({"User-Agent": self.user_agent(options.release_context)})
        headers.update(_normalize_headers(options.headers))

        domain = self.config.accounts_domain
        if options.use_session_header:
            session_id = self.credentials.get_session_id(domain)
            if session_id:
                headers[SESSION_HEADER] = session_id
        if options.use_auth_header:
            token = self.credentials.get_session_token(domain)
            if token:
                headers[AUTH_HEADER] = token

        return PreparedRequest(
            method=options.method.upper(),
            url=options.url,
            headers=headers,
            timeout=self._build_request_timeout(options),
            proxy=options.proxy or self.config.proxy_for(options.url),
            params=options.params,
            content=options.content,
            data=options.data,
            json=options.json,
            body_stream=options.body_stream,
            force_ssl=True,
            follow_redirect=False,
            binary=options.binary,
            use_session_header=options.use_session_header,
        )

    def _client_options(self, proxy: str | None) -> dict[str, Any]:
        kwargs = dict(self._client_kwargs)
        if proxy:
            kwargs["proxy"] = proxy
        return kwargs

    def _log_dispatch(self, prepared: PreparedRequest, request: httpx.Request) -> None:
        logger.debug(
            "%s %s proxy=%s headers=%s",
            request.method,
            request.url,
            prepared.proxy,
            sanitize_headers(request.headers),
        )

    def _complete(self, prepared: PreparedRequest, response: httpx.Response, body: Any) -> RequestResult:
        set_cookie = parse_set_cookie(response.headers.get_list("set-cookie"))
        if prepared.use_session_header and SESSION_HEADER in response.headers:
            self.credentials.set_session_id(self.config.accounts_domain, response.headers[SESSION_HEADER])
            logger.debug("updated session id for %s", self.config.accounts_domain)
        return RequestResult(response=response, body=body, set_cookie=set_cookie)

    def _blocking_handler(
        self,
        prepared: PreparedRequest,
        resolve: Callable[[RequestResult], Any],
        reject: Callable[[BaseException], Any],
        settled: Callable[[], bool],
    ) -> RequestCallback:
        def handler(error: BaseException | None, response: httpx.Response | None, body: Any) -> None:
            if settled():
                return
            if error is not None:
                reject(error)
                return
            try:
                result = self._complete(prepared, cast(httpx.Response, response), body)
            except Exception as exc:
                reject(exc)
                return
            resolve(result)

        return handler

    @staticmethod
    def _deliver(prepared: PreparedRequest, callback: RequestCallback, handle: Any) -> None:
        if handle.cancelled():
            return
        error = handle.exception()
        if error is not None:
            logger.debug("%s %s failed: %r", prepared.method, prepared.url, error)
            outcome: tuple[Any, Any, Any] = (error, None, None)
        else:
            response = handle.result()
            logger.debug("%s %s -> %s", prepared.method, prepared.url, response.status_code)
            outcome = (None, response, _response_body(response, prepared.binary))
        try:
            callback(*outcome)
        except Exception:
            logger.exception("callback for %s %s raised", prepared.method, prepared.url)

    @staticmethod
    def _body_or_raise(result: RequestResult) -> Any:
        response = result.response
        if 400 <= response.status_code < 600:
            raise ResponseStatusError(
                response.reason_phrase or "request failed",
                status_code=response.status_code,
                headers=response.headers,
                body=result.body,
                response=response,
            )
        return result.body


class RequestWrapper(_BaseRequestWrapper):
    """Thread based wrapper; blocking calls park only the calling thread."""

    def __init__(
        self,
        *,
        config: HTTPConfig | None = None,
        credentials: CredentialStore | None = None,
        timeout: float = _BaseRequestWrapper.default_timeout,
        httpx_client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        max_workers: int = 4,
    ) -> None:
        super().__init__(config=config, credentials=credentials, timeout=timeout)
        self._transport = transport
        self._clients: dict[str | None, httpx.Client] = {}
        if httpx_client is not None:
            self._clients[None] = httpx_client
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="meteor-http")

    def __enter__(self) -> "RequestWrapper":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()

    def _client_for(self, proxy: str | None) -> httpx.Client:
        with self._lock:
            client = self._clients.get(proxy)
            if client is None:
                kwargs = self._client_options(proxy)
                if self._transport is not None:
                    kwargs["transport"] = self._transport
                client = httpx.Client(**kwargs)
                self._clients[proxy] = client
            return client

    def _send(self, prepared: PreparedRequest) -> httpx.Response:
        client = self._client_for(prepared.proxy)
        content = prepared.content
        if prepared.body_stream is not None:
            content = _iter_stream(prepared.body_stream)
        request = client.build_request(
            prepared.method,
            prepared.url,
            headers=prepared.headers,
            params=prepared.params,
            content=content,
            data=prepared.data,
            json=prepared.json,
            timeout=prepared.timeout,
        )
        self._log_dispatch(prepared, request)
        return client.send(request, follow_redirects=prepared.follow_redirect)

    def request(self, url_or_options: RequestInput, callback: RequestCallback | None = None) -> Any:
        """Perform one request.

        Returns a :class:`RequestResult` when ``callback`` is omitted, otherwise
        the :class:`concurrent.futures.Future` of the in-flight request.
        Transport errors raised by httpx propagate unchanged in blocking mode.
        The callback runs on a worker thread; exceptions it raises are logged
        through this module's logger and not propagated.
        """
        prepared = self.prepare(url_or_options, callback_mode=callback is not None)

        outcome: Future[RequestResult] | None = None
        if callback is None:
            outcome = Future()
            callback = self._blocking_handler(prepared, outcome.set_result, outcome.set_exception, outcome.done)

        handle = self._executor.submit(self._send, prepared)
        handle.add_done_callback(functools.partial(self._deliver, prepared, callback))

        if outcome is not None:
            return outcome.result()
        return handle

    def get_url(self, url_or_options: RequestInput) -> Any:
        """Return the response body, or raise for offline and 4xx/5xx outcomes."""
        try:
            result = self.request(url_or_options)
        except httpx.TransportError as exc:
            raise OfflineError(str(exc) or "network unavailable", cause=exc) from exc
        return self._body_or_raise(result)


class AsyncRequestWrapper(_BaseRequestWrapper):
    """asyncio based wrapper; blocking calls suspend only the awaiting task."""

    def __init__(
        self,
        *,
        config: HTTPConfig | None = None,
        credentials: CredentialStore | None = None,
        timeout: float = _BaseRequestWrapper.default_timeout,
        httpx_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config=config, credentials=credentials, timeout=timeout)
        self._transport = transport
        self._clients: dict[str | None, httpx.AsyncClient] = {}
        if httpx_client is not None:
            self._clients[None] = httpx_client

    async def __aenter__(self) -> "AsyncRequestWrapper":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()

    def _client_for(self, proxy: str | None) -> httpx.AsyncClient:
        client = self._clients.get(proxy)
        if client is None:
            kwargs = self._client_options(proxy)
            if self._transport is not None:
                kwargs["transport"] = self._transport
            client = httpx.AsyncClient(**kwargs)
            self._clients[proxy] = client
        return client

    async def _send(self, prepared: PreparedRequest) -> httpx.Response:
        client = self._client_for(prepared.proxy)
        content: Any = prepared.content
        if prepared.body_stream is not None:
            content = _aiter_stream(prepared.body_stream)
        request = client.build_request(
            prepared.method,
            prepared.url,
            headers=prepared.headers,
            params=prepared.params,
            content=content,
            data=prepared.data,
            json=prepared.json,
            timeout=prepared.timeout,
        )
        self._log_dispatch(prepared, request)
        return await client.send(request, follow_redirects=prepared.follow_redirect)

    async def request(self, url_or_options: RequestInput, callback: RequestCallback | None = None) -> Any:
        """Perform one request.

        Returns a :class:`RequestResult` when ``callback`` is omitted, otherwise
        the :class:`asyncio.Task` of the in-flight request.
        A cancelled caller gets no result: cookies are not parsed and the
        session id is not written back.
        """
        prepared = self.prepare(url_or_options, callback_mode=callback is not None)
        loop = asyncio.get_running_loop()

        outcome: asyncio.Future[RequestResult] | None = None
        if callback is None:
            outcome = loop.create_future()
            callback = self._blocking_handler(prepared, outcome.set_result, outcome.set_exception, outcome.done)

        task = loop.create_task(self._send(prepared))
        task.add_done_callback(functools.partial(self._deliver, prepared, callback))

        if outcome is None:
            return task
        try:
            return await outcome
        except asyncio.CancelledError:
            task.cancel()
            raise

    async def get_url(self, url_or_options: RequestInput) -> Any:
        """Return the response body, or raise for offline and 4xx/5xx outcomes."""
        try:
            result = await self.request(url_or_options)
        except httpx.TransportError as exc:
            raise OfflineError(str(exc) or "network unavailable", cause=exc) from exc
        return self._body_or_raise(result)
