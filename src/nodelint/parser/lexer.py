"""Lightweight lexical scanning for JavaScript and HTML artifacts.

No syntax tree is built. Scanning produces two masked views of the source
that keep every character offset and line break of the original:

* ``code``: comments blanked, string literals intact
* ``skeleton``: comments blanked and string/template/regex contents blanked,
  delimiters kept

Token searches run on ``skeleton`` so that text inside comments and strings
never matches; string literal values are read back from ``code``.
"""

import re
from dataclasses import dataclass

_QUOTES = "\"'`"
# Characters after which a "/" starts a regular expression literal.
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = ("return", "typeof", "case", "do", "else", "in", "of", "void", "yield", "await")

_HTML_COMMENT = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)
_SCRIPT_BLOCK = re.compile(r"<script\b([^>]*)>(.*?)</script\s*>", re.DOTALL | re.IGNORECASE)
_SCRIPT_TYPE = re.compile(r"""\btype\s*=\s*["']?([^"'\s>]+)""", re.IGNORECASE)
_JS_SCRIPT_TYPES = {"text/javascript", "application/javascript", "module", "text/ecmascript"}


@dataclass(frozen=True)
class ScannedText:
    """Masked views of one source text."""
    source: str
    code: str
    skeleton: str

    def line_of(self, offset: int) -> int:
        """1-based line number of a character offset."""
        return self.source.count("\n", 0, offset) + 1

    def location(self, offset: int) -> str:
        return f"line {self.line_of(offset)}"

    def literal_at(self, quote_offset: int) -> str | None:
        """Return the string literal value whose opening quote is at quote_offset.

        The closing quote is located in the skeleton, where escaped quotes are
        already blanked. Returns None for unterminated literals.
        """
        quote = self.skeleton[quote_offset]
        if quote not in _QUOTES:
            return None
        end = self.skeleton.find(quote, quote_offset + 1)
        if end == -1:
            return None
        if quote != "`" and "\n" in self.skeleton[quote_offset:end]:
            return None
        return self.code[quote_offset + 1:end]

    def find(self, pattern: re.Pattern, start: int = 0, end: int | None = None) -> list[re.Match]:
        """All matches of pattern in the skeleton view."""
        if end is None:
            end = len(self.skeleton)
        return list(pattern.finditer(self.skeleton, start, end))


def _blank(text: str) -> str:
    return "".join("\n" if ch == "\n" else " " for ch in text)


def _starts_regex(code: list[str]) -> bool:
    """Decide whether a "/" at the current position opens a regex literal."""
    idx = len(code) - 1
    while idx >= 0 and code[idx].isspace():
        idx -= 1
    if idx < 0:
        return True
    prev = code[idx]
    if prev in _REGEX_PRECEDERS:
        return True
    if prev.isalpha():
        word_end = idx + 1
        while idx >= 0 and (code[idx].isalnum() or code[idx] in "_$"):
            idx -= 1
        return "".join(code[idx + 1:word_end]) in _REGEX_KEYWORDS
    return False


def mask_javascript(text: str) -> tuple[str, str]:
    """Return (code, skeleton) views of JavaScript source text."""
    code: list[str] = []
    skeleton: list[str] = []
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < length else ""

        if ch == "/" and nxt in "/*" and nxt:
            if nxt == "/":
                end = text.find("\n", i)
                end = length if end == -1 else end
            else:
                end = text.find("*/", i + 2)
                end = length if end == -1 else end + 2
            blank = _blank(text[i:end])
            code.extend(blank)
            skeleton.extend(blank)
            i = end
            continue

        if ch in _QUOTES or (ch == "/" and _starts_regex(skeleton)):
            end, closed = _literal_end(text, i)
            literal = text[i:end]
            code.extend(literal)
            if closed:
                skeleton.extend(ch + _blank(literal[1:-1]) + ch)
            else:
                skeleton.extend(ch + _blank(literal[1:]))
            i = end
            continue

        code.append(ch)
        skeleton.append(ch)
        i += 1

    return "".join(code), "".join(skeleton)


def _literal_end(text: str, start: int) -> tuple[int, bool]:
    """Offset just past the string, template or regex literal starting at start.

    The flag tells whether the literal was closed by its delimiter.
    """
    quote = text[start]
    in_class = False
    i = start + 1
    length = len(text)
    while i < length:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n" and quote != "`":
            # Unterminated single-line literal stops at the line break
            return i, False
        if quote == "/":
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                return i + 1, True
        elif ch == quote:
            return i + 1, True
        i += 1
    return length, False


def scan_script(text: str) -> ScannedText:
    """Scan JavaScript source."""
    code, skeleton = mask_javascript(text)
    return ScannedText(source=text, code=code, skeleton=skeleton)


def scan_markup(text: str) -> ScannedText:
    """Scan an HTML fragment.

    HTML comments are blanked in both views. Inline script blocks holding
    JavaScript get JavaScript masking; template script blocks and plain markup
    keep their text so attribute values stay searchable.
    """
    code = _HTML_COMMENT.sub(lambda m: _blank(m.group(0)), text)
    skeleton = code

    for block in _SCRIPT_BLOCK.finditer(code):
        if not is_javascript_block(block.group(1)):
            continue
        body_start, body_end = block.span(2)
        body_code, body_skeleton = mask_javascript(block.group(2))
        code = code[:body_start] + body_code + code[body_end:]
        skeleton = skeleton[:body_start] + body_skeleton + skeleton[body_end:]

    return ScannedText(source=text, code=code, skeleton=skeleton)


def is_javascript_block(attributes: str) -> bool:
    """True for script tags without a type or with a JavaScript type."""
    match = _SCRIPT_TYPE.search(attributes)
    if match is None:
        return True
    return match.group(1).lower() in _JS_SCRIPT_TYPES


def javascript_spans(scanned: ScannedText) -> list[tuple[int, int]]:
    """Offsets of inline JavaScript block bodies in a scanned markup text."""
    spans = []
    for block in _SCRIPT_BLOCK.finditer(scanned.code):
        if is_javascript_block(block.group(1)):
            spans.append(block.span(2))
    return spans


def matching_brace(skeleton: str, open_offset: int) -> int:
    """Offset of the brace closing the one at open_offset, or -1."""
    depth = 0
    for i in range(open_offset, len(skeleton)):
        ch = skeleton[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1
