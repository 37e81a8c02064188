"""Policy-document pipeline: decode, pretty-print, colorize.

IAM returns policy documents percent-encoded. The pipeline turns that wire
form into indented JSON with keys and ``service:action`` prefixes colored,
which is what gets cached on the policy and shown in the viewport.
"""

from __future__ import annotations

import json
import re
from urllib.parse import unquote_plus

from pygments.lexers.data import JsonLexer
from pygments.token import Name, String

from .errors import DecodeError, ParseError
from .palette import DEFAULT_PALETTE, Palette

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SERVICE_ACTION_RE = re.compile(r'^"([a-zA-Z0-9]+):(.*)"$', re.DOTALL)

PARSE_ERROR_PREFIX = "Error parsing JSON: "


def decode_document(encoded: str) -> str:
    """Percent-decode ``encoded`` using form rules (``+`` is a space).

    Raises ``DecodeError`` when a ``%`` is not followed by two hex digits.
    """
    bad = _BAD_ESCAPE_RE.search(encoded)
    if bad is not None:
        escape = encoded[bad.start() : bad.start() + 3]
        raise DecodeError(f'invalid URL escape "{escape}"')
    return unquote_plus(encoded, encoding="utf-8", errors="replace")


def pretty_print_document(text: str) -> str:
    """Parse ``text`` as JSON and re-serialize it with two-space indentation."""
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise ParseError(str(exc)) from exc
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def _wrap(text: str, code: str) -> str:
    return f"\033[{code}m{text}\033[0m" if code else text


def colorize_document(text: str, palette: Palette = DEFAULT_PALETTE) -> str:
    """Color object keys and the service prefix of ``service:action`` values.

    Keys (a string followed by a colon) are wrapped whole, quotes included, in
    the key color. String values shaped ``"service:rest"`` get only the
    ``service`` part wrapped in the service-name color. Removing the escapes
    again gives back ``text`` unchanged.
    """
    lexer = JsonLexer(stripnl=False, ensurenl=False)
    out: list[str] = []
    for token_type, value in lexer.get_tokens(text):
        if token_type in Name.Tag:
            out.append(_wrap(value, palette.json_key))
            continue
        if token_type in String:
            match = _SERVICE_ACTION_RE.match(value)
            if match is not None:
                service, rest = match.groups()
                out.append(f'"{_wrap(service, palette.json_service_name)}:{rest}"')
                continue
        out.append(value)
    return "".join(out)


def render_policy_document(raw: str, palette: Palette = DEFAULT_PALETTE) -> str:
    """Run the full pipeline over a raw (percent-encoded) policy document.

    ``DecodeError`` propagates to the caller. A document that is not valid JSON
    renders as ``Error parsing JSON: <reason>`` instead of raising.
    """
    decoded = decode_document(raw)
    try:
        pretty = pretty_print_document(decoded)
    except ParseError as exc:
        return f"{PARSE_ERROR_PREFIX}{exc}"
    return colorize_document(pretty, palette)


__all__ = [
    "PARSE_ERROR_PREFIX",
    "colorize_document",
    "decode_document",
    "pretty_print_document",
    "render_policy_document",
]
