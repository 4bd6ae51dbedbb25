import logging

from django.core.signals import setting_changed
from django.dispatch import receiver

from mail_css_inliner.conf import get_setting
from mail_css_inliner.events import MessageSending
from mail_css_inliner.inliner import get_inliner
from mail_css_inliner.signals import message_sending

logger = logging.getLogger("mail_css_inliner")


@receiver(message_sending)
def on_message_sending(sender, message, email=None, **kwargs):
    """Inline CSS into a message that is about to be sent."""
    try:
        get_inliner().handle(MessageSending(message=message, email=email))
    except Exception:
        if not get_setting("SEND_UNINLINED_ON_ERROR"):
            raise
        logger.exception(
            f"Failed to inline CSS for message {message.get('Message-ID')}, "
            "sending it without inlined styles"
        )


@receiver(setting_changed)
def on_setting_changed(sender, setting, **kwargs):
    """Rebuild the shared inliner when its configuration changes."""
    if setting == "MAIL_CSS_INLINER":
        get_inliner.cache_clear()
