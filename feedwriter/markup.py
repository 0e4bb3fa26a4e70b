"""XML helpers: escaping, CDATA, element building and re-indentation."""

import re
from typing import Any, Mapping

from feedwriter.exceptions import InvalidTagName

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_XML_NAME_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_.-]*")

# CDATA sections are kept whole so markup inside them is never re-indented
_TOKEN_PATTERN = re.compile(r"(<!\[CDATA\[.*?\]\]>|<[^>]*>)", re.DOTALL)

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def escape_xml(text: Any) -> str:
    """Escape the five XML special characters. Non-strings are converted with str()."""
    if not isinstance(text, str):
        return str(text)

    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def create_cdata(content: Any) -> str:
    """Wrap content in a CDATA section, splitting any embedded ``]]>`` marker."""
    if not isinstance(content, str):
        return f"<![CDATA[{content}]]>"

    return "<![CDATA[" + content.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def is_valid_xml_tag_name(name: str) -> bool:
    """Check a local XML name: a letter or underscore, then letters, digits, ``_.-``."""
    return isinstance(name, str) and _XML_NAME_PATTERN.fullmatch(name) is not None


def check_tag_name(name: str) -> str:
    """Return ``name`` if it is a valid, optionally prefixed, XML name.

    Raises:
        InvalidTagName: if any part of the name is invalid
    """
    parts = name.split(":") if isinstance(name, str) else [name]
    if len(parts) > 2 or not all(is_valid_xml_tag_name(part) for part in parts):
        raise InvalidTagName(name)
    return name


def create_element(
    tag_name: str,
    content: str = "",
    attributes: Mapping[str, Any] | None = None,
    escape_content: bool = True,
) -> str:
    """Build an element string. Empty content produces a self-closing element.

    Attribute values are always escaped; content only when ``escape_content``.
    """
    check_tag_name(tag_name)

    attrs = " ".join(f'{key}="{escape_xml(value)}"' for key, value in (attributes or {}).items())
    attr_string = f" {attrs}" if attrs else ""

    if not content:
        return f"<{tag_name}{attr_string}/>"

    body = escape_xml(content) if escape_content else content
    return f"<{tag_name}{attr_string}>{body}</{tag_name}>"


def _is_text(token: str) -> bool:
    return bool(token) and (not token.startswith("<") or token.startswith("<![CDATA["))


def _tokenize(xml: str) -> list[str]:
    # Text runs, including adjacent CDATA sections, become single tokens
    tokens: list[str] = []
    run = ""
    for part in _TOKEN_PATTERN.split(xml):
        if part.startswith("<") and not part.startswith("<![CDATA["):
            if run.strip():
                tokens.append(run.strip())
            run = ""
            tokens.append(part)
        else:
            run += part
    if run.strip():
        tokens.append(run.strip())
    return tokens


def format_xml(xml: str, indent: str = "  ") -> str:
    """Re-indent raw XML markup without parsing it.

    Works on the stream of tags and the text between them, tracking only a
    nesting depth. ``<tag>text</tag>`` stays on one line; any other opening
    tag starts a new indented block. Whitespace around tokens is discarded.
    """
    tokens = _tokenize(xml)

    def peek(index: int) -> str:
        if 0 <= index < len(tokens):
            return tokens[index]
        return ""

    parts: list[str] = []
    level = 0

    for i, token in enumerate(tokens):
        if token.startswith("<?xml"):
            parts.append(f"{token}\n")
        elif token.startswith("</"):
            level -= 1
            # No indent when closing right after inline text
            if not _is_text(peek(i - 1)):
                parts.append(indent * level)
            parts.append(token)
            if i < len(tokens) - 1:
                parts.append("\n")
        elif _is_text(token):
            if peek(i + 1).startswith("</"):
                parts.append(token)
            else:
                parts.append(f"{indent * level}{token}\n")
        elif token.endswith("/>"):
            parts.append(f"{indent * level}{token}\n")
        else:
            parts.append(indent * level + token)
            if not (_is_text(peek(i + 1)) and peek(i + 2).startswith("</")):
                parts.append("\n")
            level += 1

    return "".join(parts).strip()
