import logging

from premailer import Premailer

from mail_css_inliner.extraction import split_xml_declaration


class PremailerEngine:
    """
    Turns CSS rules into inline ``style`` attributes using premailer.

    Any engine only has to provide ``convert(html, css)``; this one is the
    default. Options are passed straight to :class:`premailer.Premailer`
    on top of ``DEFAULT_OPTIONS``. A new ``Premailer`` is built for every
    call, so one engine can be shared between threads.
    """

    DEFAULT_OPTIONS = {
        "strip_important": False,
        "remove_classes": False,
        "keep_style_tags": False,
        "disable_validation": True,
        "disable_link_rewrites": True,
        "allow_network": False,
        "allow_loading_external_files": False,
        # Stylesheets are never cached between messages
        "cache_css_parsing": False,
        "cssutils_logging_level": logging.CRITICAL,
    }

    def __init__(self, **options):
        self.options = {**self.DEFAULT_OPTIONS, **options}

    def convert(self, html: str, css: str = "") -> str:
        declaration, body = split_xml_declaration(html)
        if not body.strip():
            # premailer cannot build a document from empty markup
            return html

        premailer = Premailer(
            html=body,
            css_text=css if css and css.strip() else None,
            **self.options,
        )
        return declaration + premailer.transform()
