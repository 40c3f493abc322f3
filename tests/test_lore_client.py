from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from services.errors import (
    ImageConversionFailedError,
    InvalidConfigurationError,
    ResponseParseError,
    ServerError,
    TransportError,
)
from services.lore.client import OFFLINE_FALLBACK_LORE, LoreClient

IMAGE = b"\xff\xd8fake-jpeg\xff\xd9"


def json_handler(status_code: int, payload, calls: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, content=json.dumps(payload).encode())

    return handler


def make_client(handler, *, base_url="http://lore.test", fallback=False) -> LoreClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LoreClient(base_url, http_client, allow_offline_fallback=fallback)


@pytest.mark.asyncio
async def test_success_returns_lore_and_posts_multipart():
    calls: list[httpx.Request] = []
    client = make_client(json_handler(200, {"lore": "Whispering Blade was lost"}, calls))

    lore = await client.generate_lore(IMAGE)

    assert lore == "Whispering Blade was lost"
    assert len(calls) == 1
    request = calls[0]
    assert request.method == "POST"
    assert str(request.url) == "http://lore.test/generate-lore"
    content_type = request.headers["Content-Type"]
    assert content_type.startswith("multipart/form-data; boundary=")
    boundary = content_type.split("boundary=", 1)[1]
    assert request.content.endswith(f"\r\n--{boundary}--\r\n".encode())
    assert IMAGE in request.content
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_trailing_slash_in_base_url_is_ignored():
    calls: list[httpx.Request] = []
    client = make_client(json_handler(200, {"lore": "ok"}, calls), base_url="http://lore.test:3001/")

    await client.generate_lore(IMAGE)

    assert str(calls[0].url) == "http://lore.test:3001/generate-lore"


@pytest.mark.asyncio
async def test_non_200_with_valid_json_is_server_error():
    client = make_client(json_handler(500, {"lore": "looks fine but is not"}))

    with pytest.raises(ServerError) as excinfo:
        await client.generate_lore(IMAGE)

    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "Server error: 500"
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_other_2xx_status_is_server_error():
    client = make_client(json_handler(201, {"lore": "created"}))

    with pytest.raises(ServerError) as excinfo:
        await client.generate_lore(IMAGE)
    assert excinfo.value.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b"not json", b"[\"lore\"]", b"{}", b'{"lore": 42}', b'{"lore": "   "}'],
)
async def test_unusable_body_is_parse_error(body):
    client = make_client(lambda request: httpx.Response(200, content=body))

    with pytest.raises(ResponseParseError):
        await client.generate_lore(IMAGE)
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_empty_image_fails_without_network():
    calls: list[httpx.Request] = []
    client = make_client(json_handler(200, {"lore": "never"}, calls))

    with pytest.raises(ImageConversionFailedError):
        await client.generate_lore(b"")
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("base_url", ["", "not a url", "ftp://lore.test", "http://"])
async def test_bad_base_url_is_invalid_configuration(base_url):
    calls: list[httpx.Request] = []
    client = make_client(json_handler(200, {"lore": "never"}, calls), base_url=base_url)

    with pytest.raises(InvalidConfigurationError):
        await client.generate_lore(IMAGE)
    assert calls == []
    assert client.in_progress is False


def refuse_connection(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.mark.asyncio
async def test_transport_failure_raises_in_production():
    client = make_client(refuse_connection)

    with pytest.raises(TransportError):
        await client.generate_lore(IMAGE)
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_transport_failure_uses_fallback_outside_production():
    client = make_client(refuse_connection, fallback=True)

    assert await client.generate_lore(IMAGE) == OFFLINE_FALLBACK_LORE


@pytest.mark.asyncio
async def test_timeout_uses_fallback_outside_production():
    def time_out(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(time_out, fallback=True)

    assert await client.generate_lore(IMAGE) == OFFLINE_FALLBACK_LORE


@pytest.mark.asyncio
async def test_fallback_never_masks_http_status_errors():
    client = make_client(json_handler(503, {"error": "busy"}), fallback=True)

    with pytest.raises(ServerError):
        await client.generate_lore(IMAGE)


@pytest.mark.asyncio
async def test_fallback_never_masks_parse_errors():
    client = make_client(lambda request: httpx.Response(200, content=b"<html>"), fallback=True)

    with pytest.raises(ResponseParseError):
        await client.generate_lore(IMAGE)


@pytest.mark.asyncio
async def test_fallback_never_masks_undecodable_bodies():
    def bad_gzip(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b'{"lore": "not actually gzipped"}'),
        )

    client = make_client(bad_gzip, fallback=True)

    with pytest.raises(ResponseParseError):
        await client.generate_lore(IMAGE)
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_fallback_logs_a_warning_not_an_error(caplog):
    client = make_client(refuse_connection, fallback=True)

    with caplog.at_level(logging.DEBUG, logger="services.lore.client"):
        await client.generate_lore(IMAGE)

    levels = [record.levelno for record in caplog.records if record.name == "services.lore.client"]
    assert logging.WARNING in levels
    assert logging.ERROR not in levels


@pytest.mark.asyncio
async def test_transport_failure_in_production_logs_an_error(caplog):
    client = make_client(refuse_connection)

    with caplog.at_level(logging.ERROR, logger="services.lore.client"):
        with pytest.raises(TransportError):
            await client.generate_lore(IMAGE)

    assert any(record.levelno == logging.ERROR for record in caplog.records)


@pytest.mark.asyncio
async def test_in_progress_is_set_only_during_the_call():
    observed = []
    client: LoreClient

    def handler(request: httpx.Request) -> httpx.Response:
        observed.append(client.in_progress)
        return httpx.Response(200, json={"lore": "Ember Crown"})

    client = make_client(handler)
    assert client.in_progress is False

    await client.generate_lore(IMAGE)

    assert observed == [True]
    assert client.in_progress is False


@pytest.mark.asyncio
async def test_in_progress_is_cleared_on_cancellation():
    release = asyncio.Event()
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await release.wait()
        return httpx.Response(200, json={"lore": "never delivered"})

    client = make_client(handler)
    task = asyncio.create_task(client.generate_lore(IMAGE))
    await asyncio.wait_for(started.wait(), timeout=1)
    assert client.in_progress is True

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert client.in_progress is False
