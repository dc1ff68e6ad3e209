# catalog/html_formatter.py
"""
Plain text -> HTML for auction item descriptions.

The export only ever carries simple paragraphs, single-level "- " bullet lists
(optionally introduced by a "HEADER:" line) and bare URLs, so this is a small
block classifier rather than a markup parser. Text is not escaped: the export
already contains HTML entities that must render as-is.
"""
import re
from typing import List

_BLOCK_SPLIT_RE = re.compile(r"(?:\r?\n){2,}")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_URL_RE = re.compile(r"https?://[^\s<>\"]*[^\s<>\".,;:!?)]")
# split() keeps the tags at odd indexes
_TAG_RE = re.compile(r"(</?[A-Za-z][^<>]*>)")
_ANCHOR_OPEN_RE = re.compile(r"<a[\s>]", re.IGNORECASE)
_ANCHOR_CLOSE_RE = re.compile(r"</a\s*>", re.IGNORECASE)

BULLET = "- "


def _is_bullet(line: str) -> bool:
    return line.lstrip(" \t").startswith(BULLET)


def _strip_bullet(line: str) -> str:
    return line.lstrip(" \t")[len(BULLET):].strip()


def _anchor(m: "re.Match[str]") -> str:
    return f'<a href="{m.group(0)}">{m.group(0)}</a>'


def linkify(text: str) -> str:
    """
    Wrap bare http(s) URLs in anchors whose visible text is the URL.
    URLs inside tag attributes or inside an existing <a> element are left alone.
    """
    parts = _TAG_RE.split(text)
    in_anchor = False
    for i, part in enumerate(parts):
        if i % 2:
            if _ANCHOR_OPEN_RE.match(part):
                in_anchor = True
            elif _ANCHOR_CLOSE_RE.match(part):
                in_anchor = False
        elif not in_anchor:
            parts[i] = _URL_RE.sub(_anchor, part)
    return "".join(parts)


def _split_lines(block: str) -> List[str]:
    return [line for line in _LINE_SPLIT_RE.split(block) if line.strip()]


def _format_paragraph(lines: List[str]) -> str:
    content = "<br>\n".join(linkify(line) for line in lines)
    return f"<p>{content}</p>"


def _format_list(lines: List[str]) -> str:
    out: List[str] = []
    intro: List[str] = []
    items: List[str] = []

    def flush_intro():
        if intro:
            out.append(_format_paragraph(intro))
            intro.clear()

    for line in lines:
        if _is_bullet(line):
            flush_intro()
            items.append(_strip_bullet(line))
        elif not items:
            stripped = line.strip()
            if stripped.endswith(":"):
                flush_intro()
                out.append(f"<h5>{linkify(stripped)}</h5>")
            else:
                intro.append(stripped)
        else:
            # wrapped continuation of the previous bullet
            items[-1] = f"{items[-1]}<br>\n{line.strip()}"

    out.append("<ul>")
    out.extend(f"<li>{linkify(item)}</li>" for item in items)
    out.append("</ul>")
    return "\n".join(out)


def format_block(block: str) -> str:
    lines = _split_lines(block)
    if any(_is_bullet(line) for line in lines):
        return _format_list(lines)
    return _format_paragraph(lines)


def format_description(text: str | None) -> str:
    if not text:
        return ""

    blocks = [b.strip() for b in _BLOCK_SPLIT_RE.split(text)]
    return "\n".join(format_block(b) for b in blocks if b)
