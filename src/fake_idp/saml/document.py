"""XML parsing, serialization and canonicalization helpers.

Every pipeline stage receives a serialized document, parses its own
copies with these helpers, and hands back a new serialized document.
"""

import logging
from typing import Any

from lxml import etree

from ..utils.exceptions import DocumentStructureError
from .constants import NSMAP

logger = logging.getLogger(__name__)


def _new_parser() -> etree.XMLParser:
    # Parsers are not shared between threads
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def parse_document(document: str) -> etree._Element:
    """Parse a serialized document into a fresh tree.

    Args:
        document: XML string, with or without an XML declaration

    Returns:
        Root element of an independent tree

    Raises:
        etree.XMLSyntaxError: If the document is not well-formed
    """
    return etree.fromstring(document.encode("utf-8"), parser=_new_parser())


def serialize_document(root: etree._Element) -> str:
    """Serialize a tree as a UTF-8 XML document string with declaration."""
    return etree.tostring(
        root.getroottree(), xml_declaration=True, encoding="UTF-8"
    ).decode("utf-8")


def serialize_fragment(element: etree._Element) -> str:
    """Serialize an element subtree without XML declaration or tail text."""
    return etree.tostring(element, encoding="unicode", with_tail=False)


def canonicalize(element: etree._Element) -> bytes:
    """Exclusive XML canonicalization (without comments) of a subtree.

    Args:
        element: Element whose subtree is canonicalized, in its document context

    Returns:
        Canonical UTF-8 bytes
    """
    canonical = etree.tostring(
        element, method="c14n", exclusive=True, with_comments=False
    )
    logger.debug(
        f"Canonicalized {etree.QName(element).localname} ({len(canonical)} bytes)"
    )
    return canonical


def find_required(root: etree._Element, path: str, description: str, **variables: Any) -> etree._Element:
    """Find exactly one element by XPath or fail the build.

    Args:
        root: Element to search from
        path: XPath expression using the saml/samlp/ds/xenc prefixes
        description: Human readable node name for the error message
        **variables: XPath variables referenced in ``path``

    Returns:
        The single matching element

    Raises:
        DocumentStructureError: If no element or more than one matches
    """
    matches = root.xpath(path, namespaces=NSMAP, **variables)
    if len(matches) != 1:
        raise DocumentStructureError(
            f"Expected exactly one {description} ({path}), found {len(matches)}. "
            f"The document was not produced by the response assembler or has been altered."
        )
    return matches[0]


def remove_element(element: etree._Element) -> None:
    """Detach an element from its parent, keeping its tail text in place."""
    parent = element.getparent()
    tail = element.tail
    previous = element.getprevious()
    parent.remove(element)
    if tail:
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
