import logging

from django.core.exceptions import ImproperlyConfigured
from django.core.mail import get_connection
from django.core.mail.backends.base import BaseEmailBackend

from mail_css_inliner.conf import get_setting
from mail_css_inliner.message import with_send_signal

logger = logging.getLogger("mail_css_inliner")


class CssInliningEmailBackend(BaseEmailBackend):
    """
    Email backend that inlines CSS and hands delivery to another backend.

    Set ``EMAIL_BACKEND = "mail_css_inliner.backends.CssInliningEmailBackend"``
    and put the delivering backend in ``MAIL_CSS_INLINER["EMAIL_BACKEND"]``.
    Extra keyword arguments (host, port, credentials, ...) are passed on to
    the delivering backend.
    """

    def __init__(self, fail_silently=False, backend=None, **kwargs):
        super().__init__(fail_silently=fail_silently)
        backend = backend or get_setting("EMAIL_BACKEND")
        if backend == f"{__name__}.{self.__class__.__name__}":
            raise ImproperlyConfigured(
                "MAIL_CSS_INLINER['EMAIL_BACKEND'] must name the backend that "
                "delivers mail, not CssInliningEmailBackend itself."
            )
        self.connection = get_connection(backend, fail_silently=fail_silently, **kwargs)

    def open(self):
        return self.connection.open()

    def close(self):
        return self.connection.close()

    def send_messages(self, email_messages):
        if not email_messages:
            return 0

        logger.debug(f"Inlining CSS for {len(email_messages)} message(s)")
        return self.connection.send_messages(
            [with_send_signal(email_message) for email_message in email_messages]
        )
