"""
Markdown to ESC/POS compilation.

Two stages:
- parse_markdown(): Python-Markdown parses the document; a tree-processor
  captures the element tree once inline processing is done and it is turned
  into a generic MarkupNode tree (root / paragraph / heading / text / strong
  plus pass-through kinds for everything else).
- compile_tree(): depth-first walk emitting text bytes interleaved with
  formatting commands. Unknown node kinds produce no output, so unsupported
  markup degrades to omission rather than failure.

Text policy:
- "raw" passes text through verbatim (UTF-8). A control byte inside the
  source text reaches the printer unchanged and may be read as a command.
- "strip" drops C0 control characters except newline, carriage return and
  tab, and DEL, before encoding.
"""

from __future__ import annotations

import html
import logging
import re
import xml.etree.ElementTree as etree
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE

from receipt_printer.core.errors import MarkupError
from receipt_printer.protocol import commands

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = b"\n\n"

_ENTITY_RE = re.compile(r"^&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);$")

_TAG_KINDS: Dict[str, str] = {
    "p": "paragraph",
    "strong": "strong",
    "em": "emphasis",
    "ul": "list",
    "ol": "list",
    "li": "list_item",
    "blockquote": "blockquote",
    "pre": "code_block",
    "code": "inline_code",
    "hr": "thematic_break",
    "br": "break",
    "a": "link",
    "img": "image",
}


class TextPolicy(str, Enum):
    RAW = "raw"
    STRIP = "strip"


@dataclass(frozen=True)
class MarkupNode:
    """One node of a parsed document. `value` is set on text nodes, `depth` on headings."""

    kind: str
    children: Tuple["MarkupNode", ...] = ()
    value: str = ""
    depth: int = 0


# ----- Parsing ---------------------------------------------------------------


class _CaptureTreeprocessor(Treeprocessor):
    def run(self, root: etree.Element) -> None:
        self.root = root
        return None


class _CaptureTreeExtension(Extension):
    """Keeps a handle on the final element tree of the last conversion."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        self.processor = _CaptureTreeprocessor(md)
        # After inline (20), prettify (10) and unescape (0)
        md.treeprocessors.register(self.processor, "receipt_capture", -10)


def _split_placeholders(text: str, stash: List[object]) -> List[MarkupNode]:
    """
    Turn a text run into text nodes, replacing raw-HTML placeholders with
    html nodes. Stashed character entities are decoded back into text.
    """
    nodes: List[MarkupNode] = []
    pending = ""
    pos = 0
    for m in HTML_PLACEHOLDER_RE.finditer(text):
        pending += text[pos : m.start()]
        pos = m.end()
        idx = int(m.group(1))
        raw = stash[idx] if idx < len(stash) else None
        if isinstance(raw, str) and _ENTITY_RE.match(raw):
            pending += html.unescape(raw)
            continue
        if pending:
            nodes.append(MarkupNode("text", value=pending))
            pending = ""
        nodes.append(MarkupNode("html"))
    pending += text[pos:]
    if pending:
        nodes.append(MarkupNode("text", value=pending))
    return nodes


def _convert(elem: etree.Element, md: markdown.Markdown, root: bool = False) -> MarkupNode:
    stash = md.htmlStash.rawHtmlBlocks
    has_block_child = any(md.is_block_level(child.tag) for child in elem)

    def text_nodes(text: Optional[str]) -> List[MarkupNode]:
        if not text:
            return []
        # Whitespace between block elements is layout, not content
        if (root or has_block_child) and not text.strip():
            return []
        return _split_placeholders(text, stash)

    children: List[MarkupNode] = text_nodes(elem.text)
    for child in elem:
        children.append(_convert(child, md))
        children.extend(text_nodes(child.tail))

    if root:
        return MarkupNode("root", tuple(children))
    tag = str(elem.tag)
    if len(tag) == 2 and tag[0] == "h" and tag[1] in "123456":
        return MarkupNode("heading", tuple(children), depth=int(tag[1]))
    kind = _TAG_KINDS.get(tag, tag)
    if kind == "paragraph" and children and all(c.kind == "html" for c in children):
        # A paragraph holding nothing but raw HTML is a block of HTML
        kind = "html"
    return MarkupNode(kind, tuple(children))


def parse_markdown(text: str) -> MarkupNode:
    """
    Parse markdown source into a MarkupNode tree rooted at a "root" node.

    Raises:
        MarkupError if the parser fails.
    """
    capture = _CaptureTreeExtension()
    md = markdown.Markdown(extensions=[capture])
    try:
        md.convert(text)
    except Exception as e:
        raise MarkupError(f"Failed to parse markdown - {e}") from e
    tree = getattr(capture.processor, "root", None)
    if tree is None:
        # Empty documents never reach the tree-processors
        return MarkupNode("root")
    return _convert(tree, md, root=True)


# ----- Compilation -----------------------------------------------------------


def _heading_style(depth: int) -> Tuple[bytes, bytes]:
    """
    (enable, disable) commands for a heading level.

    h1: GS ! 0x11, double width AND double height (not height alone), reset with GS ! 0x00
    h2: underline + bold
    h3: bold
    h4-h6: unstyled
    """
    if depth == 1:
        return commands.char_size(1, 1), commands.char_size(0, 0)
    if depth == 2:
        return (
            commands.underline(True) + commands.bold(True),
            commands.underline(False) + commands.bold(False),
        )
    if depth == 3:
        return commands.bold(True), commands.bold(False)
    return b"", b""


def _is_control_char(c: str) -> bool:
    return (ord(c) < 32 and c not in "\n\r\t") or ord(c) == 127


def encode_text(value: str, policy: Union[TextPolicy, str] = TextPolicy.RAW) -> bytes:
    if TextPolicy(policy) is TextPolicy.STRIP:
        value = "".join(c for c in value if not _is_control_char(c))
    return value.encode("utf-8")


def _compile_node(node: MarkupNode, buf: bytearray, policy: TextPolicy) -> None:
    kind = node.kind
    if kind == "root":
        for child in node.children:
            _compile_node(child, buf, policy)
    elif kind == "paragraph":
        for child in node.children:
            _compile_node(child, buf, policy)
        buf += PARAGRAPH_BREAK
    elif kind == "heading":
        style, reset = _heading_style(node.depth)
        buf += style
        for child in node.children:
            _compile_node(child, buf, policy)
        buf += reset
        buf += PARAGRAPH_BREAK
    elif kind == "text":
        buf += encode_text(node.value, policy)
    elif kind == "strong":
        buf += commands.bold(True)
        for child in node.children:
            _compile_node(child, buf, policy)
        buf += commands.bold(False)
    else:
        logger.debug("Skipping unsupported markup node: %s", kind)


def compile_tree(node: MarkupNode, policy: Union[TextPolicy, str] = TextPolicy.RAW) -> bytes:
    """Render a MarkupNode tree into printer bytes. Deterministic and side-effect free."""
    buf = bytearray()
    _compile_node(node, buf, TextPolicy(policy))
    return bytes(buf)


def compile_markdown(text: str, policy: Union[TextPolicy, str] = TextPolicy.RAW) -> bytes:
    """Parse markdown and compile it to printer bytes."""
    return compile_tree(parse_markdown(text), policy)


__all__ = [
    "MarkupNode",
    "TextPolicy",
    "compile_markdown",
    "compile_tree",
    "encode_text",
    "parse_markdown",
]
