"""
Helpers for reading and rebuilding the MIME part tree of an outgoing email.

Parts are plain :class:`email.message.Message` objects, exactly as Django's
``EmailMessage.message()`` builds them. Nothing in here mutates a part it
was given, except :func:`set_body` which writes a finished tree back onto
the top-level message.
"""

import enum
from email.message import Message
from email.mime.text import MIMEText
from typing import Optional


class PartKind(enum.Enum):
    HTML = "html"
    TEXT = "text"
    ALTERNATIVE = "alternative"
    RELATED = "related"
    MIXED = "mixed"
    OTHER = "other"


CONTAINER_KINDS = {
    "alternative": PartKind.ALTERNATIVE,
    "related": PartKind.RELATED,
    "mixed": PartKind.MIXED,
}

# Headers describing the payload itself; they are regenerated, never copied.
BODY_HEADERS = ("Content-Type", "Content-Transfer-Encoding")
_REGENERATED_LEAF_HEADERS = {"content-type", "content-transfer-encoding", "mime-version"}


def classify(part) -> PartKind:
    """Return the kind of a MIME part."""
    if not isinstance(part, Message):
        return PartKind.OTHER

    if part.is_multipart():
        if part.get_content_maintype() != "multipart":
            return PartKind.OTHER
        return CONTAINER_KINDS.get(part.get_content_subtype(), PartKind.OTHER)

    # An attached .html file is content to deliver, not the message body.
    if part.get_content_disposition() == "attachment":
        return PartKind.OTHER

    if part.get_content_maintype() == "text":
        if part.get_content_subtype() == "html":
            return PartKind.HTML
        return PartKind.TEXT

    return PartKind.OTHER


def get_body(message: Message) -> Optional[Message]:
    """The root of the message's part tree, or None for a message without body."""
    if message.get_payload() is None:
        return None
    return message


def read_text(part: Message, charset: str) -> str:
    """Decode the payload of a text leaf; bytes invalid in ``charset`` raise."""
    payload = part.get_payload(decode=True)
    if payload is None:
        return ""
    return payload.decode(charset)


def build_html_part(html: str, charset: str, template: Message) -> Message:
    """
    Create a ``text/html`` leaf holding ``html``.

    Headers of ``template`` that do not describe the payload (Content-ID,
    Content-Disposition, ...) are carried over.
    """
    part = MIMEText(html, "html", charset, policy=template.policy)
    for name, value in template.items():
        if name.lower() not in _REGENERATED_LEAF_HEADERS:
            part[name] = value
    return part


def rebuild_container(template: Message, children) -> Message:
    """
    Create a multipart node with the headers of ``template`` and the given
    children, in the given order.
    """
    factory = template.policy.message_factory or Message
    container = factory(policy=template.policy)
    for name, value in template.items():
        container[name] = value
    container.set_payload(list(children))
    return container


def set_body(message: Message, part: Message) -> None:
    """Install ``part`` as the body of ``message``, keeping its other headers."""
    for name in BODY_HEADERS:
        del message[name]
    for name in BODY_HEADERS:
        value = part.get(name)
        if value is not None:
            message[name] = value
    message.set_payload(part.get_payload())
