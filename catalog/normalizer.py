# catalog/normalizer.py
"""
Spacing and punctuation cleanup for text coming out of the auction export.

The rewrites are order-sensitive: whitespace before punctuation has to be
removed before sentence boundaries are detected, and space collapsing runs
last so it absorbs anything the earlier steps introduced.
"""
import re

_PHONE_RE = re.compile(r"(\d{3})-(\d{3})-(\d{4})")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,!?;:])")
_SENTENCE_JOIN_RE = re.compile(r"([.!?])([A-Z])")
_PAREN_JOIN_RE = re.compile(r"\)([A-Za-z0-9])")
_MULTI_SPACE_RE = re.compile(r" {2,}")


def format_phone_numbers(text: str) -> str:
    return _PHONE_RE.sub(r"(\1) \2-\3", text)


def remove_spaces_before_punctuation(text: str) -> str:
    return _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)


def add_spaces_after_sentence_punctuation(text: str) -> str:
    return _SENTENCE_JOIN_RE.sub(r"\1 \2", text)


def add_spaces_after_parens(text: str) -> str:
    return _PAREN_JOIN_RE.sub(r") \1", text)


def collapse_multiple_spaces(text: str) -> str:
    return _MULTI_SPACE_RE.sub(" ", text)


_PIPELINE = (
    format_phone_numbers,
    remove_spaces_before_punctuation,
    add_spaces_after_sentence_punctuation,
    add_spaces_after_parens,
    collapse_multiple_spaces,
)


def normalize(text: str | None) -> str:
    """
    Normalize spacing/punctuation defects in ``text``.

    >>> normalize("This is a  rare item.Good for collectors .")
    'This is a rare item. Good for collectors.'
    >>> normalize(None)
    ''
    """
    if not text:
        return ""
    for step in _PIPELINE:
        text = step(text)
    return text
