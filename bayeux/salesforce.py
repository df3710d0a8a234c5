"""An HTTP transport that authenticates requests to Salesforce with a token."""

from __future__ import annotations

import threading
from http.cookies import CookieError, SimpleCookie

import httpx


def _copy_with_headers(request: httpx.Request) -> httpx.Request:
    return httpx.Request(
        request.method,
        request.url,
        headers=request.headers.copy(),
        stream=request.stream,
        extensions=dict(request.extensions),
    )


def _response_cookies(response: httpx.Response) -> list[tuple[str, str]]:
    cookies: list[tuple[str, str]] = []
    for header in response.headers.get_list("set-cookie"):
        jar: SimpleCookie = SimpleCookie()
        try:
            jar.load(header)
        except CookieError:
            continue
        cookies.extend((name, morsel.value) for name, morsel in jar.items())
    return cookies


class StaticTokenAuthenticator(httpx.BaseTransport):
    """Adds a bearer token and session cookies to requests for salesforce.com hosts."""

    def __init__(self, token: str, transport: httpx.BaseTransport | None = None) -> None:
        self.token = token
        self.transport = transport if transport is not None else httpx.HTTPTransport()
        self._cookies: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if not request.url.host.endswith("salesforce.com"):
            return self.transport.handle_request(request)
        if not self.token:
            raise ValueError("no Token provided to authenticator transport")

        authed = _copy_with_headers(request)
        authed.headers["Authorization"] = f"Bearer {self.token}"
        with self._lock:
            cookies = list(self._cookies)
        for name, value in cookies:
            pair = f"{name}={value}"
            existing = authed.headers.get("Cookie")
            authed.headers["Cookie"] = f"{existing}; {pair}" if existing else pair

        response = self.transport.handle_request(authed)
        with self._lock:
            self._cookies = _response_cookies(response)
        return response

    def close(self) -> None:
        self.transport.close()