"""
EmailMessage classes and mixins that inline CSS when the MIME message is
built.

``InlineCssMixin`` inlines directly. ``SendingSignalMixin`` only fires the
``message_sending`` signal and leaves the work to its receivers, which is
what :class:`~mail_css_inliner.backends.CssInliningEmailBackend` relies on.
"""

import copy
import functools

from django.core.mail import EmailMessage, EmailMultiAlternatives

from mail_css_inliner.events import MessageEvent
from mail_css_inliner.inliner import get_inliner
from mail_css_inliner.signals import message_sending


class SendingSignalMixin:
    def message(self, *args, **kwargs):
        msg = super().message(*args, **kwargs)
        message_sending.send(sender=self.__class__, message=msg, email=self)
        return msg


class InlineCssMixin:
    def message(self, *args, **kwargs):
        msg = super().message(*args, **kwargs)
        get_inliner().handle_event(MessageEvent(self, msg))
        return msg


class InlinedEmailMessage(InlineCssMixin, EmailMessage):
    pass


class InlinedEmailMultiAlternatives(InlineCssMixin, EmailMultiAlternatives):
    pass


def with_send_signal(email_message):
    """
    Return a copy of ``email_message`` whose ``message()`` fires
    ``message_sending``. Messages that already inline or signal on their
    own are returned as they are.
    """
    if isinstance(email_message, (InlineCssMixin, SendingSignalMixin)):
        return email_message

    signalling = copy.copy(email_message)
    signalling.__class__ = _signalling_class(type(email_message))
    return signalling


@functools.lru_cache(maxsize=None)
def _signalling_class(cls):
    return type(
        f"Signalling{cls.__name__}",
        (SendingSignalMixin, cls),
        {
            "__module__": __name__,
            "_signalled_class": cls,
            "__reduce__": _reduce_signalling_copy,
        },
    )


def _reduce_signalling_copy(email_message):
    # Generated classes cannot be looked up by name; pickle and copy go
    # through the wrapped class instead.
    return _restore_signalling_copy, (email_message._signalled_class, email_message.__dict__)


def _restore_signalling_copy(cls, state):
    email_message = cls.__new__(cls)
    email_message.__dict__.update(state)
    email_message.__class__ = _signalling_class(cls)
    return email_message
