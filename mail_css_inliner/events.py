from dataclasses import dataclass
from email.message import Message
from typing import Any, Optional


@dataclass
class MessageSending:
    """
    Notification sent right before a message goes out.

    ``message`` is the MIME message that is about to be delivered and may
    be modified in place; ``email`` is the Django ``EmailMessage`` it was
    built from, when there is one.
    """

    message: Any
    email: Optional[Any] = None


class MessageEvent:
    """A message passing through the send pipeline."""

    def __init__(self, email, message: Message):
        self._email = email
        self._message = message

    def get_email(self):
        return self._email

    def get_message(self) -> Message:
        return self._message
