import re
from typing import List, NamedTuple, Tuple

from lxml import etree
from lxml import html as lxml_html


# lxml refuses str input that carries an encoding declaration.
XML_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml\b[^>]*\?>")


class ExtractedStylesheets(NamedTuple):
    paths: List[str]
    html: str


def extract_stylesheet_links(markup: str) -> ExtractedStylesheets:
    """
    Strip ``<link rel="stylesheet">`` elements out of an HTML document.

    Returns the ``href`` of every removed link, in document order, together
    with the re-serialized document. When the markup holds no stylesheet
    links the original string is returned untouched, so documents that need
    no rewriting never go through a parse/serialize round trip.

    Broken markup is parsed in recovery mode and never raises.
    """
    declaration, body = split_xml_declaration(markup)

    # A parser per call: lxml parser objects must not be shared across threads.
    parser = lxml_html.HTMLParser(recover=True, no_network=True)
    try:
        document = lxml_html.document_fromstring(body, parser=parser)
    except (etree.ParserError, etree.ParseError):
        # Nothing lxml can build a tree from (e.g. an empty body)
        return ExtractedStylesheets([], markup)

    links = [
        link for link in document.iter("link")
        if link.get("rel") == "stylesheet"
    ]
    if not links:
        return ExtractedStylesheets([], markup)

    paths = []
    for link in links:
        href = link.get("href")
        if href:
            paths.append(href)
        link.drop_tree()

    cleaned = etree.tostring(document.getroottree(), encoding="unicode", method="html")
    return ExtractedStylesheets(paths, declaration + cleaned)


def split_xml_declaration(markup: str) -> Tuple[str, str]:
    """Split a leading ``<?xml ...?>`` declaration (XHTML mail) off the markup."""
    match = XML_DECLARATION_RE.match(markup)
    if match is None:
        return "", markup
    return match.group(0), markup[match.end():]
