"""
Shared fixtures: archive builders and a local HTTP server serving test binaries.
"""

import asyncio
import io
import zipfile
from collections import Counter

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

EXE_BYTES = b"MZ" + b"\x00" * 62 + b"test executable"


def make_zip(entries: dict[str, bytes]) -> bytes:
    """Builds an in-memory zip archive from a name -> content mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


TOOLS_ZIP = make_zip(
    {
        "EvtxExplorer/EvtxECmd.exe": EXE_BYTES,
        "EvtxExplorer/Maps/Security_4624.map": b"Author: test\n",
        "readme.txt": b"tools bundle\n",
    }
)


@pytest.fixture
def tools_zip() -> bytes:
    return TOOLS_ZIP


@pytest_asyncio.fixture
async def binary_server():
    """
    Serves test artifacts and counts requests per path in `server.hits`.

    Routes:
        /tools.zip      a valid archive with a nested EvtxECmd.exe
        /tool.exe       a plain binary
        /broken.zip     bytes that are not a zip archive
        /missing.exe    404
        /truncated.exe  announces more bytes than it sends, then drops the connection
        /stalled.exe    sends part of the body, then waits until `server.release` is set
    """
    hits: Counter = Counter()

    async def count(request: web.Request) -> None:
        hits[request.path] += 1

    async def tools(request):
        await count(request)
        return web.Response(body=TOOLS_ZIP, content_type="application/zip")

    async def tool(request):
        await count(request)
        return web.Response(body=EXE_BYTES, content_type="application/octet-stream")

    async def broken(request):
        await count(request)
        return web.Response(body=b"this is not a zip file")

    async def truncated(request):
        await count(request)
        response = web.StreamResponse(headers={"Content-Length": "1048576"})
        await response.prepare(request)
        await response.write(b"x" * 4096)
        request.transport.close()
        return response

    release = asyncio.Event()

    async def stalled(request):
        await count(request)
        response = web.StreamResponse(headers={"Content-Length": "1048576"})
        await response.prepare(request)
        await response.write(b"x" * 4096)
        try:
            await asyncio.wait_for(release.wait(), timeout=10)
        except asyncio.TimeoutError:
            pass
        if request.transport is not None:
            request.transport.close()
        return response

    app = web.Application()
    app.router.add_get("/tools.zip", tools)
    app.router.add_get("/tool.exe", tool)
    app.router.add_get("/broken.zip", broken)
    app.router.add_get("/truncated.exe", truncated)
    app.router.add_get("/stalled.exe", stalled)

    async with TestServer(app) as server:
        server.hits = hits
        server.release = release
        try:
            yield server
        finally:
            release.set()


def url_for(server: TestServer, path: str) -> str:
    return str(server.make_url(path))


UNREACHABLE_URL = "http://127.0.0.1:1/unreachable.exe"
