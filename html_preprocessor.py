from __future__ import annotations

import re

import lxml.html
from lxml import etree


STRIP_TAGS = ("script", "style", "noscript", "template")
HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")


def clean_page_markup(raw_html: str) -> str:
    """
    Drop the parts of a rendered page that carry no readable content
    (scripts, styles, comments, inline-hidden nodes) and collapse
    whitespace. Element structure and attributes are kept so selectors
    written against the live page still match the cleaned markup.
    """
    if not raw_html.strip():
        return ""
    doc = lxml.html.document_fromstring(raw_html)

    for el in list(doc.iter(*STRIP_TAGS)):
        _drop(el)

    for comment in list(doc.iter(etree.Comment)):
        _drop(comment)

    for el in list(doc.iter()):
        if not isinstance(el.tag, str):
            continue
        if HIDDEN_STYLE_RE.search(el.get("style", "")):
            _drop(el)

    for el in doc.iter():
        if el.text:
            el.text = WHITESPACE_RE.sub(" ", el.text)
        if el.tail:
            el.tail = WHITESPACE_RE.sub(" ", el.tail)

    return lxml.html.tostring(doc, encoding="unicode", doctype="<!DOCTYPE html>")


def _drop(el) -> None:
    if el.getparent() is None:
        return
    # drop_tree keeps the tail text attached to the previous node.
    el.drop_tree()
