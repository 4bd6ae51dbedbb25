import codecs
import functools
import logging
from email.message import Message
from typing import Optional

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from mail_css_inliner.conf import get_setting
from mail_css_inliner.engines import PremailerEngine
from mail_css_inliner.extraction import extract_stylesheet_links
from mail_css_inliner.parts import (
    PartKind,
    build_html_part,
    classify,
    get_body,
    read_text,
    rebuild_container,
    set_body,
)
from mail_css_inliner.stylesheets import load_css

logger = logging.getLogger("mail_css_inliner")


class CssInliner:
    """
    Inlines CSS into the HTML parts of outgoing MIME messages.

    The stylesheets listed in ``css_files`` are read once, here, and
    applied to every HTML part. Stylesheets an HTML part links to itself
    are read each time that part is processed.

    Instances hold no per-message state and can be shared between threads
    as long as the engine can.
    """

    def __init__(self, css_files=(), engine=None, default_charset="utf-8"):
        self.css_to_always_include = load_css(css_files)
        self.engine = engine if engine is not None else PremailerEngine()
        self.default_charset = default_charset

    # ----- Event adapters -----

    def handle(self, event) -> None:
        """Inline a pre-send notification that carries a ``message`` attribute."""
        message = _as_mime_message(getattr(event, "message", None))
        if message is None:
            return
        self.handle_message(message)

    def handle_event(self, event) -> None:
        """Inline a send-pipeline event that exposes ``get_message()``."""
        message = _as_mime_message(event.get_message())
        if message is None:
            return
        self.handle_message(message)

    # ----- Part tree -----

    def handle_message(self, message: Message) -> None:
        """
        Inline every HTML part of ``message`` and write the new body back.

        The replacement tree is fully built before anything is written, so
        when loading or inlining fails the message is left as it was.
        """
        body = get_body(message)
        if body is None:
            logger.debug("Message has no body, nothing to inline")
            return

        if classify(body) is PartKind.MIXED:
            children = body.get_payload()
            rebuilt = list(children)
            for index, child in enumerate(children):
                replacement = self.transform_part(child)
                if replacement is not None:
                    rebuilt[index] = replacement

            set_body(message, rebuild_container(body, rebuilt))
            return

        replacement = self.transform_part(body)
        if replacement is not None:
            set_body(message, replacement)

    def transform_part(self, part) -> Optional[Message]:
        """
        Return the inlined replacement for ``part``, or None when the part
        is to be kept as it is.
        """
        kind = classify(part)

        if kind is PartKind.HTML:
            return self._inline_html_part(part)

        if kind is PartKind.ALTERNATIVE:
            children = [self._transform_or_keep(child) for child in part.get_payload()]
            return rebuild_container(part, children)

        if kind is PartKind.RELATED:
            children = part.get_payload()
            if not children:
                return None
            main, rest = children[0], children[1:]
            return rebuild_container(part, [self._transform_or_keep(main), *rest])

        # TEXT, OTHER, and MIXED below the top level pass through
        return None

    def _transform_or_keep(self, part):
        replacement = self.transform_part(part)
        if replacement is None:
            return part
        return replacement

    def _part_charset(self, part: Message) -> str:
        """The declared charset, or the default when none or an unknown one is declared."""
        charset = part.get_content_charset()
        if not charset:
            return self.default_charset
        try:
            codecs.lookup(charset)
        except LookupError:
            logger.debug(f"Unknown charset {charset!r}, using {self.default_charset}")
            return self.default_charset
        return charset

    def _inline_html_part(self, part: Message) -> Message:
        charset = self._part_charset(part)
        html = read_text(part, charset)

        css_files, html = extract_stylesheet_links(html)
        css = self.css_to_always_include + "\n" + load_css(css_files)
        html = self.engine.convert(html, css)

        logger.debug(
            f"Inlined CSS into HTML part ({len(css_files)} linked stylesheet(s))"
        )
        return build_html_part(html, charset, template=part)


def _as_mime_message(candidate) -> Optional[Message]:
    if isinstance(candidate, Message):
        return candidate
    return None


@functools.lru_cache(maxsize=None)
def get_inliner() -> CssInliner:
    """
    Return the process-wide inliner configured through MAIL_CSS_INLINER.

    Built on first use; reset when the setting changes.
    """
    engine_path = get_setting("ENGINE")
    try:
        engine_class = import_string(engine_path)
    except ImportError as exc:
        raise ImproperlyConfigured(
            f"MAIL_CSS_INLINER['ENGINE'] refers to '{engine_path}', "
            f"which could not be imported: {exc}"
        ) from exc

    return CssInliner(
        css_files=get_setting("CSS_FILES"),
        engine=engine_class(**get_setting("ENGINE_OPTIONS")),
        default_charset=get_setting("DEFAULT_CHARSET"),
    )
