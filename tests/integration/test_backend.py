from email import message_from_bytes
from unittest.mock import MagicMock, patch

import pytest
from django.core import mail
from django.core.exceptions import ImproperlyConfigured
from django.core.mail import get_connection, send_mail

from mail_css_inliner.backends import CssInliningEmailBackend
from mail_css_inliner.signals import message_sending
from tests import backends
from tests.factories import EmailFactory, HtmlEmailFactory, find_part, part_text, squash

BACKEND = "mail_css_inliner.backends.CssInliningEmailBackend"


@pytest.fixture(autouse=True)
def inlining_backend(settings):
    settings.EMAIL_BACKEND = BACKEND


@pytest.fixture
def delivered(inliner_settings):
    """Deliver through RecordingEmailBackend and return the parsed messages it sent."""
    inliner_settings(EMAIL_BACKEND="tests.backends.RecordingEmailBackend")
    backends.delivered.clear()

    def _messages():
        return [message_from_bytes(raw) for raw in backends.delivered]

    yield _messages
    backends.delivered.clear()


@pytest.fixture
def red_paragraphs(inliner_settings, stylesheet):
    inliner_settings(CSS_FILES=[str(stylesheet("p{color:red}"))])


class TestCssInliningEmailBackend:
    def test_send_mail_inlines_html_alternative(self, delivered, red_paragraphs):
        sent = send_mail(
            subject="Welcome",
            message="Plain text",
            from_email="support@example.com",
            recipient_list=["customer@example.com"],
            html_message="<p>hi</p>",
        )

        assert sent == 1
        assert len(delivered()) == 1
        message = delivered()[0]
        html = part_text(find_part(message, "text/html"))
        assert "color:red" in squash(html)
        assert part_text(find_part(message, "text/plain")) == "Plain text"
        assert message["Subject"] == "Welcome"

    def test_linked_stylesheet_is_inlined(self, delivered, stylesheet):
        path = stylesheet("p{color:blue}", name="x.css")
        email = EmailFactory(
            html=(
                f'<html><head><link rel="stylesheet" href="{path}"></head>'
                "<body><p>hi</p></body></html>"
            )
        )

        email.send()

        html = part_text(find_part(delivered()[0], "text/html"))
        assert "<link" not in html
        assert "color:blue" in squash(html)

    def test_attachments_are_kept(self, delivered, red_paragraphs):
        email = EmailFactory(html="<p>hi</p>")
        email.attach("report.csv", "a,b\n1,2\n", "text/csv")

        email.send()

        message = delivered()[0]
        assert message.get_content_type() == "multipart/mixed"
        body, attachment = message.get_payload()
        assert body.get_content_type() == "multipart/alternative"
        assert attachment.get_filename() == "report.csv"
        assert "color:red" in squash(part_text(find_part(message, "text/html")))

    def test_html_only_mail_is_inlined(self, delivered, red_paragraphs):
        HtmlEmailFactory(body="<p>hi</p>").send()

        message = delivered()[0]
        assert message.get_content_type() == "text/html"
        assert "color:red" in squash(part_text(message))

    def test_plain_text_mail_is_untouched(self, delivered, red_paragraphs):
        send_mail("Hi", "Only text", "support@example.com", ["customer@example.com"])

        message = delivered()[0]
        assert message.get_content_type() == "text/plain"
        assert part_text(message) == "Only text"

    def test_message_sending_signal_fires_once_per_delivery(self, delivered):
        received = []

        def listener(sender, message, email, **kwargs):
            received.append((message, email))

        message_sending.connect(listener)
        try:
            EmailFactory(subject="Signal", html="<p>hi</p>").send()
        finally:
            message_sending.disconnect(listener)

        assert len(received) == 1
        assert len(delivered()) == 1
        message, email = received[0]
        assert message["Subject"] == "Signal"
        assert email.subject == "Signal"

    def test_original_email_object_is_not_changed(self, mailoutbox):
        email = EmailFactory(html="<p>hi</p>")
        original_class = type(email)

        get_connection().send_messages([email])

        assert type(email) is original_class
        assert isinstance(mailoutbox[0], original_class)

    def test_missing_stylesheet_blocks_the_send(self, mailoutbox, tmp_path):
        email = EmailFactory(
            html=f'<link rel="stylesheet" href="{tmp_path / "missing.css"}"><p>hi</p>'
        )

        with pytest.raises(FileNotFoundError):
            email.send()

        assert mailoutbox == []

    def test_missing_stylesheet_can_be_sent_uninlined(
        self, delivered, tmp_path, inliner_settings, caplog
    ):
        inliner_settings(SEND_UNINLINED_ON_ERROR=True)
        email = EmailFactory(
            html=f'<link rel="stylesheet" href="{tmp_path / "missing.css"}"><p>hi</p>'
        )

        with caplog.at_level("ERROR", logger="mail_css_inliner"):
            assert email.send() == 1

        html = part_text(find_part(delivered()[0], "text/html"))
        assert "missing.css" in html
        assert "sending it without inlined styles" in caplog.text

    def test_empty_message_list(self):
        assert CssInliningEmailBackend().send_messages([]) == 0

    def test_refuses_to_wrap_itself(self, inliner_settings):
        inliner_settings(EMAIL_BACKEND=BACKEND)

        with pytest.raises(ImproperlyConfigured):
            CssInliningEmailBackend()

    def test_delegates_connection_handling(self):
        inner = MagicMock()
        with patch("mail_css_inliner.backends.get_connection", return_value=inner) as factory:
            backend = CssInliningEmailBackend(
                fail_silently=True,
                backend="django.core.mail.backends.smtp.EmailBackend",
                host="smtp.example.com",
            )
            backend.open()
            backend.close()

        factory.assert_called_once_with(
            "django.core.mail.backends.smtp.EmailBackend",
            fail_silently=True,
            host="smtp.example.com",
        )
        inner.open.assert_called_once_with()
        inner.close.assert_called_once_with()

    def test_works_as_context_manager(self, mailoutbox, red_paragraphs):
        with get_connection() as connection:
            EmailFactory(html="<p>hi</p>", connection=connection).send()

        assert len(mail.outbox) == 1
