import logging
import os

logger = logging.getLogger("mail_css_inliner")


def load_css(paths) -> str:
    """
    Read the given CSS files and concatenate their contents in order.

    Files are re-read on every call. A missing or unreadable file raises
    the underlying ``OSError``; callers decide whether that is fatal.
    """
    chunks = []
    for path in paths:
        with open(os.fspath(path), encoding="utf-8") as handle:
            chunks.append(handle.read())
        logger.debug(f"Loaded stylesheet {path}")

    return "\n".join(chunks)
