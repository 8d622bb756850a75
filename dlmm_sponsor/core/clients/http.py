from __future__ import annotations

from dataclasses import dataclass

import aiohttp


@dataclass(slots=True)
class HttpClient:
    session: aiohttp.ClientSession


_http_client: HttpClient | None = None


async def init_http_client() -> HttpClient:
    global _http_client
    if _http_client is None:
        _http_client = HttpClient(session=aiohttp.ClientSession())
    return _http_client


async def close_http_client() -> None:
    global _http_client
    client = _http_client
    _http_client = None
    if client is not None:
        await client.session.close()


def get_http_client() -> HttpClient:
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized")
    return _http_client
