"""Mailgun delivery outcomes, driven through httpx.MockTransport."""

import asyncio

import httpx

from mailer import MailgunMailer


def make_mailer(handler, **kwargs):
    options = {"api_key": "key-test", "domain": "mg.example.com", "sender": "noreply@example.com"}
    options.update(kwargs)
    return MailgunMailer(transport=httpx.MockTransport(handler), **options)


def test_unconfigured_mailer_fails_without_calling_out():
    calls = []
    mailer = make_mailer(lambda request: calls.append(request), api_key=None)

    result = asyncio.run(mailer.send_login_link("a@example.com", "https://x/verify-login?token=t"))

    assert result.success is False
    assert calls == []


def test_successful_send_posts_form_to_domain():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json={"id": "<1@mg>", "message": "Queued"})

    result = asyncio.run(make_mailer(handler).send_login_link("a@example.com", "https://x/verify-login?token=t"))

    assert result.success is True
    assert seen["url"] == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert "to=a%40example.com" in seen["body"]
    assert seen["auth"].startswith("Basic ")


def test_rejected_send_reports_provider_message():
    handler = lambda request: httpx.Response(401, json={"message": "Invalid private key"})

    result = asyncio.run(make_mailer(handler).send("a@example.com", "s", "t"))

    assert result.success is False
    assert result.error == "Invalid private key"


def test_network_error_is_a_failed_result():
    def handler(request):
        raise httpx.ConnectError("unreachable")

    result = asyncio.run(make_mailer(handler).send_invitation("a@example.com", "https://x", "admin", "b@example.com"))

    assert result.success is False
