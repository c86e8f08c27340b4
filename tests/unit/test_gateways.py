"""Tests for the S3 object store and Stripe payment gateway adapters."""

import json
import time
from types import SimpleNamespace
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import boto3
import pytest
import stripe
from botocore.config import Config
from botocore.stub import Stubber

from mistore.common.exceptions import GatewayError, SignatureError, UploadError
from mistore.payments.gateway import StripeGateway
from mistore.storage.gateway import S3ObjectStore
from mistore.storage.keys import filename_from_key, generate_object_key, sanitize_filename


# ── Object keys ──

class TestObjectKeys:
    @pytest.mark.parametrize("raw, expected", [
        ("chess.apk", "chess.apk"),
        ("My Chess Game.apk", "My_Chess_Game.apk"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\app.apk", "app.apk"),
        ("jeu d'échecs!.apk", "jeu_dchecs.apk"),
        ("", "file"),
        (None, "file"),
        ("...", "file"),
    ])
    def test_sanitize_filename(self, raw, expected):
        assert sanitize_filename(raw) == expected

    def test_key_format(self):
        key = generate_object_key("apks", "My Chess.apk")
        prefix, rest = key.split("/", 1)
        millis, token, name = rest.split("-", 2)
        assert prefix == "apks"
        assert abs(int(millis) - time.time() * 1000) < 60_000
        assert len(token) == 8
        assert name == "My_Chess.apk"

    def test_keys_are_unique(self):
        keys = {generate_object_key("apks", "chess.apk") for _ in range(50)}
        assert len(keys) == 50

    def test_filename_from_key(self):
        key = generate_object_key("images/", "icon one.png")
        assert key.startswith("images/")
        assert filename_from_key(key) == "icon_one.png"
        assert filename_from_key("legacy/whatever.apk") == "whatever.apk"


# ── S3 ──

def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="AKIATESTKEY",
        aws_secret_access_key="test-secret",
        config=Config(signature_version="s3v4"),
    )


class TestS3ObjectStore:
    async def test_put_object(self, settings):
        client = s3_client()
        store = S3ObjectStore(settings, client=client)
        with Stubber(client) as stubber:
            stubber.add_response("put_object", {"ETag": '"abc123"'})
            key = await store.put_object(
                "apks/1-0a1b2c3d-chess.apk", b"apk-bytes",
                "application/vnd.android.package-archive",
            )
            stubber.assert_no_pending_responses()
        assert key == "apks/1-0a1b2c3d-chess.apk"

    async def test_put_failure_raises_upload_error(self, settings):
        client = s3_client()
        store = S3ObjectStore(settings, client=client)
        with Stubber(client) as stubber:
            stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
            with pytest.raises(UploadError):
                await store.put_object("apks/x.apk", b"data", "application/zip")

    async def test_delete_failure_raises_gateway_error(self, settings):
        client = s3_client()
        store = S3ObjectStore(settings, client=client)
        with Stubber(client) as stubber:
            stubber.add_client_error("delete_object", service_error_code="NoSuchBucket", http_status_code=404)
            with pytest.raises(GatewayError):
                await store.delete_object("apks/x.apk")

    async def test_delete_object(self, settings):
        client = s3_client()
        store = S3ObjectStore(settings, client=client)
        with Stubber(client) as stubber:
            stubber.add_response("delete_object", {})
            await store.delete_object("apks/x.apk")
            stubber.assert_no_pending_responses()

    async def test_presigned_url_is_time_limited(self, settings):
        store = S3ObjectStore(settings, client=s3_client())
        url = await store.presign_get("apks/1-0a1b2c3d-chess.apk", 300, filename="chess.apk")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.path.endswith("/apks/1-0a1b2c3d-chess.apk")
        assert "mistore-test" in url
        assert query["X-Amz-Expires"] == ["300"]
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert 'filename="chess.apk"' in query["response-content-disposition"][0]

    async def test_lazy_client_uses_settings(self, settings):
        settings.aws_access_key_id = "AKIATESTKEY"
        settings.aws_secret_access_key = "test-secret"
        store = S3ObjectStore(settings)
        url = await store.presign_get("images/icon.png", 60)
        assert "X-Amz-Expires=60" in url
        assert store._get_client() is store._get_client()


# ── Stripe ──

def signed(payload: bytes, secret: str, ts: int | None = None) -> str:
    import hashlib
    import hmac

    ts = ts or int(time.time())
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


class TestStripeWebhookVerification:
    def _event(self):
        return json.dumps({
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {"app_id": "3"}}},
        }).encode()

    def test_valid_signature(self, settings):
        gateway = StripeGateway(settings)
        payload = self._event()
        event = gateway.verify_webhook(payload, signed(payload, settings.stripe_webhook_secret))
        assert event["type"] == "checkout.session.completed"
        assert event["data"]["object"]["id"] == "cs_1"

    def test_tampered_payload(self, settings):
        gateway = StripeGateway(settings)
        payload = self._event()
        header = signed(payload, settings.stripe_webhook_secret)
        with pytest.raises(SignatureError):
            gateway.verify_webhook(payload.replace(b'"3"', b'"4"'), header)

    def test_wrong_secret(self, settings):
        gateway = StripeGateway(settings)
        payload = self._event()
        with pytest.raises(SignatureError):
            gateway.verify_webhook(payload, signed(payload, "whsec_wrong"))

    def test_stale_timestamp(self, settings):
        gateway = StripeGateway(settings)
        payload = self._event()
        old = int(time.time()) - 3600
        with pytest.raises(SignatureError):
            gateway.verify_webhook(payload, signed(payload, settings.stripe_webhook_secret, old))

    @pytest.mark.parametrize("header", ["", "garbage", "t=123"])
    def test_malformed_header(self, settings, header):
        with pytest.raises(SignatureError):
            StripeGateway(settings).verify_webhook(self._event(), header)

    def test_missing_secret(self, settings):
        settings.stripe_webhook_secret = ""
        payload = self._event()
        with pytest.raises(SignatureError, match="not configured"):
            StripeGateway(settings).verify_webhook(payload, signed(payload, "whsec_x"))

    def test_signed_non_object_body(self, settings):
        payload = b"[1, 2, 3]"
        with pytest.raises(SignatureError, match="event object"):
            StripeGateway(settings).verify_webhook(
                payload, signed(payload, settings.stripe_webhook_secret),
            )

    def test_signed_invalid_json(self, settings):
        payload = b"not json"
        with pytest.raises(SignatureError, match="JSON"):
            StripeGateway(settings).verify_webhook(
                payload, signed(payload, settings.stripe_webhook_secret),
            )


class TestStripeCheckout:
    async def test_creates_session(self, settings):
        gateway = StripeGateway(settings)
        fake = SimpleNamespace(id="cs_live_1", url="https://checkout.stripe.com/c/pay/cs_live_1")
        with patch("stripe.checkout.Session.create", return_value=fake) as create:
            checkout = await gateway.create_checkout_session(
                app_id=7, name="Chess", amount=500, currency="usd",
                success_url="https://store.test/success", cancel_url="https://store.test/",
            )

        assert checkout.id == "cs_live_1"
        assert checkout.url == fake.url
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == settings.stripe_secret_key
        assert kwargs["mode"] == "payment"
        assert kwargs["metadata"] == {"app_id": "7"}
        assert kwargs["client_reference_id"] == "7"
        item = kwargs["line_items"][0]
        assert item["quantity"] == 1
        assert item["price_data"]["unit_amount"] == 500
        assert item["price_data"]["product_data"] == {"name": "Chess"}

    async def test_stripe_error_becomes_gateway_error(self, settings):
        gateway = StripeGateway(settings)
        with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("card declined")):
            with pytest.raises(GatewayError):
                await gateway.create_checkout_session(
                    app_id=7, name="Chess", amount=500, currency="usd",
                    success_url="s", cancel_url="c",
                )

    async def test_unconfigured_key(self, settings):
        settings.stripe_secret_key = ""
        with patch("stripe.checkout.Session.create") as create:
            with pytest.raises(GatewayError, match="not configured"):
                await StripeGateway(settings).create_checkout_session(
                    app_id=7, name="Chess", amount=500, currency="usd",
                    success_url="s", cancel_url="c",
                )
        create.assert_not_called()
