import hashlib
import json

import httpx
import pytest
from firebase_admin.exceptions import UnavailableError

from app.core.errors import ServerError
from app.services.image_storage import CloudinaryStorage, _signature
from app.services.mailer import SendGridMailer
from app.services import push as push_module
from app.services.push import FcmPushSender


async def test_password_reset_email_payload():
    captured = {}

    def handler(request):
        captured["auth"] = request.headers["authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(202)

    mailer = SendGridMailer(api_key="sg-key", sender="no-reply@mindcare.app",
                            transport=httpx.MockTransport(handler))
    result = await mailer.send_password_reset("ana@example.com", "123456")

    assert result.ok
    assert captured["auth"] == "Bearer sg-key"
    body = captured["body"]
    assert body["personalizations"][0]["to"] == [{"email": "ana@example.com"}]
    assert "123456" in body["content"][0]["value"]
    assert "code=123456" in body["content"][0]["value"]


async def test_email_failure_is_reported_not_raised():
    mailer = SendGridMailer(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    result = await mailer.send("ana@example.com", "s", "t", "<p>t</p>")
    assert not result.ok
    assert result.error


async def test_contact_email_escapes_html_and_sets_reply_to():
    captured = {}

    def handler(request):
        captured.update(json.loads(request.content))
        return httpx.Response(202)

    mailer = SendGridMailer(api_key="k", transport=httpx.MockTransport(handler))
    await mailer.send_contact("Ana", "ana@example.com", "Help", "<script>x</script>")

    assert captured["reply_to"] == {"email": "ana@example.com"}
    assert "<script>" not in captured["content"][1]["value"]
    assert captured["subject"] == "[Support] Help"


async def test_push_not_configured():
    result = await FcmPushSender(credentials_path="").send("tok", "t", "b")
    assert not result.ok


async def test_push_sends_message_through_firebase(monkeypatch):
    sent = []
    firebase_app = object()

    def fake_send(message, app=None):
        sent.append((message, app))
        return "projects/p/messages/1"

    monkeypatch.setattr(push_module.messaging, "send", fake_send)
    sender = FcmPushSender(app=firebase_app)
    result = await sender.send("device-1", "MindCare", "Bia liked your post.")

    assert result.ok
    message, app = sent[0]
    assert app is firebase_app
    assert message.token == "device-1"
    assert message.notification.title == "MindCare"
    assert message.notification.body == "Bia liked your post."


async def test_push_failure_is_reported_not_raised(monkeypatch):
    def fake_send(message, app=None):
        raise UnavailableError("fcm down")

    monkeypatch.setattr(push_module.messaging, "send", fake_send)
    result = await FcmPushSender(app=object()).send("device-1", "MindCare", "hi")

    assert not result.ok
    assert "fcm down" in result.error


async def test_push_bad_credentials_file_is_reported(tmp_path):
    sender = FcmPushSender(credentials_path=str(tmp_path / "missing.json"))
    result = await sender.send("device-1", "MindCare", "hi")
    assert not result.ok


def test_cloudinary_signature_sorts_params():
    expected = hashlib.sha1(b"public_id=a&timestamp=1315060510abcd").hexdigest()
    assert _signature({"timestamp": 1315060510, "public_id": "a"}, "abcd") == expected


async def test_image_upload_returns_secure_url():
    storage = CloudinaryStorage(transport=httpx.MockTransport(
        lambda r: httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/x.png"})
    ))
    assert await storage.upload_image(b"png", "x.png") == "https://res.cloudinary.com/x.png"


async def test_image_upload_failure_raises():
    storage = CloudinaryStorage(transport=httpx.MockTransport(lambda r: httpx.Response(401)))
    with pytest.raises(ServerError):
        await storage.upload_image(b"png", "x.png")
