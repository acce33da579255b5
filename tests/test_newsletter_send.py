import asyncio
import smtplib
import threading

import pytest

from app.core.errors import ServiceUnavailable
from app.models.subscriber import NewsletterSubscriber
from app.services import email as email_service
from app.services import newsletter
from app.services.email import EmailDeliveryError, EmailTransportError, SmtpProvider
from app.services.newsletter import NewsletterMessage, is_bounce, send_newsletter

MESSAGE = NewsletterMessage(subject="Hi", body="<p>Hi</p>")


class FakeProvider:
    def __init__(self, failures=None, configured=True, barrier=None):
        self.failures = failures or {}
        self.configured = configured
        self.barrier = barrier
        self.calls = []
        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0

    def is_configured(self):
        return self.configured

    def send(self, to_email, subject, html_body, text_body=None):
        with self._lock:
            self.calls.append((to_email, subject, html_body))
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.barrier is not None:
                self.barrier.wait()
            error = self.failures.get(to_email)
            if error is not None:
                raise error
        finally:
            with self._lock:
                self._in_flight -= 1


class BounceLog:
    def __init__(self):
        self.calls = []

    def __call__(self, email, reason):
        self.calls.append((email, reason))


def run(coro):
    return asyncio.run(coro)


def test_example_scenario():
    provider = FakeProvider(failures={"b@x.com": Exception("invalid recipient")})
    bounces = BounceLog()

    result = run(send_newsletter(["a@x.com", "b@x.com"], MESSAGE, bounces, provider=provider))

    assert result.to_dict() == {
        "success": False,
        "sent": 1,
        "failed": 1,
        "errors": ["Failed to send to b@x.com: invalid recipient"],
        "bounced": ["b@x.com"],
    }
    assert bounces.calls == [("b@x.com", "invalid recipient")]


def test_counts_and_bounce_subset():
    recipients = [f"user{i}@x.com" for i in range(25)]
    failures = {
        "user3@x.com": Exception("Mailbox NOT FOUND"),
        "user7@x.com": Exception("connection reset by peer"),
        "user12@x.com": Exception("Hard Bounce"),
        "user20@x.com": Exception("timeout"),
    }
    provider = FakeProvider(failures=failures)
    bounces = BounceLog()

    result = run(send_newsletter(recipients, MESSAGE, bounces, provider=provider, batch_size=10))

    assert result.sent == 21
    assert result.failed == 4
    assert result.success is False
    assert sorted(result.bounced) == ["user12@x.com", "user3@x.com"]
    assert sorted(e for e, _ in bounces.calls) == ["user12@x.com", "user3@x.com"]
    assert len(result.errors) == 4
    # exactly one delivery attempt per recipient
    assert sorted(c[0] for c in provider.calls) == sorted(recipients)


def test_all_sent_is_success():
    provider = FakeProvider()
    result = run(send_newsletter(["a@x.com", "b@x.com", "c@x.com"], MESSAGE, provider=provider))
    assert result.to_dict() == {"success": True, "sent": 3, "failed": 0, "errors": [], "bounced": []}


def test_empty_recipient_list():
    provider = FakeProvider()
    result = run(send_newsletter([], MESSAGE, provider=provider))
    assert result.success is True
    assert result.sent == result.failed == 0
    assert provider.calls == []


def test_sends_within_a_batch_run_concurrently():
    # Every send waits on a 3-party barrier: only concurrent batches of 3 get through
    provider = FakeProvider(barrier=threading.Barrier(3, timeout=5))

    result = run(send_newsletter([f"u{i}@x.com" for i in range(6)], MESSAGE, provider=provider, batch_size=3))

    assert result.failed == 0, result.errors
    assert result.sent == 6
    assert provider.max_in_flight == 3


def test_batches_never_overlap():
    provider = FakeProvider()
    run(send_newsletter([f"u{i}@x.com" for i in range(10)], MESSAGE, provider=provider, batch_size=4))
    assert provider.max_in_flight <= 4


def test_pauses_between_batches_only(monkeypatch):
    sleeps = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay, *args, **kwargs):
        sleeps.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(newsletter.asyncio, "sleep", fake_sleep)

    run(send_newsletter(
        [f"u{i}@x.com" for i in range(7)], MESSAGE,
        provider=FakeProvider(), batch_size=3, batch_delay_ms=250,
    ))

    assert sleeps.count(0.25) == 2


def test_missing_provider_fails_before_any_send():
    provider = FakeProvider(configured=False)
    with pytest.raises(ServiceUnavailable):
        run(send_newsletter(["a@x.com"], MESSAGE, provider=provider))
    assert provider.calls == []


def test_default_provider_requires_smtp_settings():
    # SMTP_SERVER is blank in the test environment
    with pytest.raises(ServiceUnavailable):
        run(send_newsletter(["a@x.com"], MESSAGE))


def test_async_bounce_callback_is_awaited():
    seen = []

    async def on_bounce(email, reason):
        await asyncio.sleep(0)
        seen.append(email)

    provider = FakeProvider(failures={"a@x.com": Exception("bounced")})
    result = run(send_newsletter(["a@x.com"], MESSAGE, on_bounce, provider=provider))

    assert seen == ["a@x.com"]
    assert result.bounced == ["a@x.com"]


def test_failing_bounce_callback_does_not_change_accounting():
    def on_bounce(email, reason):
        raise RuntimeError("db down")

    provider = FakeProvider(failures={"b@x.com": Exception("invalid recipient")})
    result = run(send_newsletter(["a@x.com", "b@x.com"], MESSAGE, on_bounce, provider=provider))

    assert (result.sent, result.failed, result.bounced) == (1, 1, ["b@x.com"])


def test_each_email_carries_its_unsubscribe_link():
    provider = FakeProvider()
    run(send_newsletter(["a+b@x.com"], MESSAGE, provider=provider))
    _, subject, html = provider.calls[0]
    assert subject == "Hi"
    assert "<p>Hi</p>" in html
    assert "https://vonai.test/unsubscribe?email=a%2Bb%40x.com" in html


class TestBounceClassification:
    def test_permanent_smtp_code(self):
        assert is_bounce(EmailDeliveryError("550 5.1.1 mailbox unavailable", smtp_code=550))

    def test_transient_smtp_code(self):
        assert not is_bounce(EmailDeliveryError("421 try again later", smtp_code=421))

    @pytest.mark.parametrize("message", ["Bounce detected", "INVALID address", "domain not found"])
    def test_message_patterns(self, message):
        assert is_bounce(Exception(message))

    def test_other_errors(self):
        assert not is_bounce(Exception("rate limited"))

    def test_transport_errors_never_bounce(self):
        assert not is_bounce(EmailTransportError("535 5.7.8 invalid credentials"))


def fake_smtp(login_error=None, sendmail_error=None):
    class FakeSMTP:
        def __init__(self, *args, **kwargs):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def ehlo(self):
            pass

        def starttls(self):
            pass

        def login(self, username, password):
            if login_error is not None:
                raise login_error

        def sendmail(self, from_addr, to_addrs, msg):
            if sendmail_error is not None:
                raise sendmail_error

    return FakeSMTP


class TestSmtpFailures:
    RECIPIENTS = ["a@x.com", "b@x.com", "c@x.com"]

    @pytest.fixture
    def provider(self):
        return SmtpProvider(
            server="smtp.vonai.test", username="news", password="secret", from_address="news@vonai.com",
        )

    def _send(self, provider):
        bounces = BounceLog()
        result = run(send_newsletter(self.RECIPIENTS, MESSAGE, bounces, provider=provider))
        return result, bounces

    @pytest.mark.parametrize("error", [
        smtplib.SMTPAuthenticationError(535, b"5.7.8 Username and Password not accepted"),
        smtplib.SMTPConnectError(554, b"service unavailable"),
    ])
    def test_login_or_connection_failure_bounces_nobody(self, monkeypatch, provider, error):
        monkeypatch.setattr(email_service.smtplib, "SMTP", fake_smtp(login_error=error))

        result, bounces = self._send(provider)

        assert result.failed == 3
        assert result.bounced == []
        assert bounces.calls == []

    @pytest.mark.parametrize("error", [
        smtplib.SMTPSenderRefused(550, b"5.7.1 Sender address rejected", "news@vonai.com"),
        smtplib.SMTPDataError(554, b"5.7.1 Message rejected as spam"),
    ])
    def test_sender_or_message_refusal_bounces_nobody(self, monkeypatch, provider, error):
        monkeypatch.setattr(email_service.smtplib, "SMTP", fake_smtp(sendmail_error=error))

        result, bounces = self._send(provider)

        assert result.failed == 3
        assert result.bounced == []
        assert bounces.calls == []

    def test_refused_recipient_is_a_bounce(self, monkeypatch, provider):
        refused = smtplib.SMTPRecipientsRefused({"b@x.com": (550, b"5.1.1 mailbox unavailable")})

        class PerRecipient(fake_smtp()):
            def sendmail(self, from_addr, to_addrs, msg):
                if to_addrs == ["b@x.com"]:
                    raise refused

        monkeypatch.setattr(email_service.smtplib, "SMTP", PerRecipient)

        result, bounces = self._send(provider)

        assert (result.sent, result.failed) == (2, 1)
        assert result.bounced == ["b@x.com"]
        assert bounces.calls == [("b@x.com", "550 5.1.1 mailbox unavailable")]

    def test_data_rejection_naming_the_recipient_is_a_bounce(self, monkeypatch, provider):
        error = smtplib.SMTPDataError(550, b"5.1.1 <c@x.com>: Recipient address rejected")
        monkeypatch.setattr(email_service.smtplib, "SMTP", fake_smtp(sendmail_error=error))

        result, _ = self._send(provider)

        assert result.bounced == ["c@x.com"]


class TestSendEndpoint:
    @pytest.fixture
    def subscribers(self, db):
        db.add_all([
            NewsletterSubscriber(email="a@x.com", status="active"),
            NewsletterSubscriber(email="b@x.com", status="active"),
            NewsletterSubscriber(email="gone@x.com", status="unsubscribed"),
            NewsletterSubscriber(email="dead@x.com", status="bounced"),
        ])
        db.commit()

    def test_requires_admin(self, client):
        r = client.post("/api/admin/newsletter/send", json={"subject": "Hi", "content": "<p>Hi</p>"})
        assert r.status_code == 401
        assert r.json() == {"error": "Unauthorized"}

    def test_sends_to_active_and_records_bounces(self, admin_client, subscribers, db, monkeypatch):
        provider = FakeProvider(failures={"b@x.com": Exception("invalid recipient")})
        monkeypatch.setattr(newsletter, "get_email_provider", lambda: provider)

        r = admin_client.post("/api/admin/newsletter/send", json={"subject": "Hi", "content": "<p>Hi</p>"})

        assert r.status_code == 200
        assert r.json() == {
            "success": False,
            "sent": 1,
            "failed": 1,
            "errors": ["Failed to send to b@x.com: invalid recipient"],
            "bounced": ["b@x.com"],
        }
        assert sorted(c[0] for c in provider.calls) == ["a@x.com", "b@x.com"]

        db.expire_all()
        statuses = {s.email: s.status for s in db.query(NewsletterSubscriber).all()}
        assert statuses["b@x.com"] == "bounced"
        assert statuses["a@x.com"] == "active"

    def test_bounces_in_one_batch_are_all_recorded(self, admin_client, subscribers, db, monkeypatch):
        provider = FakeProvider(failures={
            "a@x.com": Exception("mailbox not found"),
            "b@x.com": Exception("invalid recipient"),
        })
        monkeypatch.setattr(newsletter, "get_email_provider", lambda: provider)

        r = admin_client.post("/api/admin/newsletter/send", json={"subject": "Hi", "content": "<p>Hi</p>"})

        assert sorted(r.json()["bounced"]) == ["a@x.com", "b@x.com"]
        db.expire_all()
        statuses = {s.email: s.status for s in db.query(NewsletterSubscriber).all()}
        assert statuses == {
            "a@x.com": "bounced",
            "b@x.com": "bounced",
            "gone@x.com": "unsubscribed",
            "dead@x.com": "bounced",
        }

    def test_unconfigured_email_is_503(self, admin_client, subscribers):
        r = admin_client.post("/api/admin/newsletter/send", json={"subject": "Hi", "content": "<p>Hi</p>"})
        assert r.status_code == 503
        assert "not configured" in r.json()["error"]

    def test_blank_subject_is_400(self, admin_client):
        r = admin_client.post("/api/admin/newsletter/send", json={"subject": "", "content": "<p>Hi</p>"})
        assert r.status_code == 400
        assert r.json()["error"].startswith("Validation error")
