from __future__ import annotations

import asyncio
import dataclasses
import json

import httpx
import pytest

from mentorship.services import mailer


@pytest.fixture
def configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        mailer,
        "SETTINGS",
        dataclasses.replace(
            mailer.SETTINGS,
            mail_from="team@bit2byte.dev",
            mailjet_api_key="key",
            mailjet_api_secret="secret",
        ),
    )


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_build_message_shape() -> None:
    body = mailer.build_message(to=["a@x.io", "b@x.io"], subject="Hi", text="t", html="<p>t</p>")
    [message] = body["Messages"]
    assert message["To"] == [{"Email": "a@x.io"}, {"Email": "b@x.io"}]
    assert message["Subject"] == "Hi"
    assert message["HTMLPart"] == "<p>t</p>"


def test_send_posts_to_mailjet(configured: None) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Messages": [{"Status": "success"}]})

    async def run() -> None:
        async with _client(handler) as client:
            await mailer.send_email(to=["a@x.io"], subject="Hi", text="t", client=client)

    asyncio.run(run())
    [request] = seen
    assert str(request.url) == mailer.MAILJET_SEND_URL
    assert request.headers["authorization"].startswith("Basic ")
    payload = json.loads(request.content)
    assert payload["Messages"][0]["From"]["Email"] == "team@bit2byte.dev"


def test_send_raises_on_error_status(configured: None) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="unauthorized")

    async def run() -> None:
        async with _client(handler) as client:
            await mailer.send_email(to=["a@x.io"], subject="Hi", text="t", client=client)

    with pytest.raises(mailer.MailDeliveryError, match="401"):
        asyncio.run(run())


def test_send_wraps_transport_errors(configured: None) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async def run() -> None:
        async with _client(handler) as client:
            await mailer.send_email(to=["a@x.io"], subject="Hi", text="t", client=client)

    with pytest.raises(mailer.MailDeliveryError):
        asyncio.run(run())


def test_unconfigured_mail_is_logged_not_sent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("should not be called")

    async def run() -> None:
        async with _client(handler) as client:
            await mailer.send_email(to=["a@x.io"], subject="Hi", text="t", client=client)

    asyncio.run(run())


def test_no_recipients_is_an_error() -> None:
    with pytest.raises(mailer.MailDeliveryError):
        asyncio.run(mailer.send_email(to=[], subject="Hi", text="t"))
