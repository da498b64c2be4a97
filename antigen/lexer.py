"""Tokenizer that turns Rust source text into nested token trees."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

PUNCT_CHARS = frozenset("!#$%&'*+,-./:;<=>?@^|~")

_OPEN_TO_CLOSE = {"(": ")", "[": "]", "{": "}"}
_CLOSE_TO_OPEN = {close: open_ for open_, close in _OPEN_TO_CLOSE.items()}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}

_CONTINUATION_WHITESPACE = (" ", "\t", "\n", "\r")


class LexError(ValueError):
    """Raised when source text cannot be split into tokens."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


class TokenKind(enum.Enum):
    """The lexical class of a single token."""

    IDENT = "ident"
    PUNCT = "punct"
    LIFETIME = "lifetime"
    STRING = "string"
    BYTE_STRING = "byte_string"
    C_STRING = "c_string"
    CHAR = "char"
    BYTE = "byte"
    NUMBER = "number"


@dataclass(frozen=True)
class Token:
    """A leaf token.

    ``joint`` is true for punctuation immediately followed by more
    punctuation (as in ``::`` or ``->``). ``value`` holds the unescaped
    content of string, byte and character literals.
    """

    kind: TokenKind
    text: str
    line: int = 0
    joint: bool = False
    value: Optional[str] = None

    def is_punct(self, char: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == char


@dataclass
class Group:
    """A delimited sequence of token trees: ``( )``, ``[ ]`` or ``{ }``."""

    delimiter: str
    trees: list = field(default_factory=list)
    line: int = 0

    @property
    def closing(self) -> str:
        return _OPEN_TO_CLOSE[self.delimiter]


TokenTree = Union[Token, Group]


def _is_ident_start(char: str) -> bool:
    return bool(char) and (char == "_" or char.isalpha())


def _is_ident_continue(char: str) -> bool:
    return bool(char) and (char == "_" or char.isalnum())


class _Lexer:
    def __init__(self, source: str) -> None:
        self.src = source
        self.pos = 0
        self.line = 1

    def _at(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.src[index] if index < len(self.src) else ""

    def _advance(self, count: int = 1) -> None:
        end = min(self.pos + count, len(self.src))
        self.line += self.src.count("\n", self.pos, end)
        self.pos = end

    def run(self) -> list:
        root: list = []
        stack: list = [(None, root, 1)]
        self._skip_shebang()
        while True:
            self._skip_trivia()
            char = self._at()
            if not char:
                break
            if char in _OPEN_TO_CLOSE:
                stack.append((char, [], self.line))
                self._advance()
            elif char in _CLOSE_TO_OPEN:
                opener, trees, line = stack[-1]
                if opener != _CLOSE_TO_OPEN[char]:
                    raise LexError(f"unexpected closing delimiter {char!r}", self.line)
                stack.pop()
                stack[-1][1].append(Group(opener, trees, line))
                self._advance()
            else:
                stack[-1][1].append(self._token())
        if len(stack) > 1:
            opener, _, line = stack[-1]
            raise LexError(f"unclosed delimiter {opener!r}", line)
        return root

    def _skip_shebang(self) -> None:
        if self.src.startswith("#!") and not self.src[2:].lstrip().startswith("["):
            end = self.src.find("\n")
            self._advance((len(self.src) if end == -1 else end) - self.pos)

    def _skip_trivia(self) -> None:
        while True:
            char = self._at()
            if char and char.isspace():
                self._advance()
            elif self.src.startswith("//", self.pos):
                end = self.src.find("\n", self.pos)
                self._advance((len(self.src) if end == -1 else end) - self.pos)
            elif self.src.startswith("/*", self.pos):
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        start_line = self.line
        depth = 0
        while self.pos < len(self.src):
            if self.src.startswith("/*", self.pos):
                depth += 1
                self._advance(2)
            elif self.src.startswith("*/", self.pos):
                depth -= 1
                self._advance(2)
                if depth == 0:
                    return
            else:
                self._advance()
        raise LexError("unterminated block comment", start_line)

    def _token(self) -> Token:
        char = self._at()
        if char == '"':
            return self._string(TokenKind.STRING, 0)
        if char == "'":
            return self._quote()
        if char in string.digits:
            return self._number()
        if _is_ident_start(char):
            literal = self._prefixed_literal()
            if literal is not None:
                return literal
            return self._ident()
        if char in PUNCT_CHARS:
            line = self.line
            following = self._at(1)
            joint = following in PUNCT_CHARS and not self.src.startswith(
                ("//", "/*"), self.pos + 1
            )
            self._advance()
            return Token(TokenKind.PUNCT, char, line, joint=joint)
        raise LexError(f"unexpected character {char!r}", self.line)

    def _ident(self) -> Token:
        start, line = self.pos, self.line
        if self.src.startswith("r#", self.pos) and _is_ident_start(self._at(2)):
            self._advance(2)
        self._read_ident_tail()
        return Token(TokenKind.IDENT, self.src[start : self.pos], line)

    def _read_ident_tail(self) -> None:
        while _is_ident_continue(self._at()):
            self._advance()

    def _suffix(self) -> None:
        if _is_ident_start(self._at()):
            self._read_ident_tail()

    def _prefixed_literal(self) -> Optional[Token]:
        for prefix, kind in (
            ("br", TokenKind.BYTE_STRING),
            ("cr", TokenKind.C_STRING),
            ("r", TokenKind.STRING),
        ):
            if self.src.startswith(prefix, self.pos):
                index = self.pos + len(prefix)
                while index < len(self.src) and self.src[index] == "#":
                    index += 1
                if index < len(self.src) and self.src[index] == '"':
                    return self._raw_string(kind, len(prefix))
        for prefix, kind in (("b", TokenKind.BYTE_STRING), ("c", TokenKind.C_STRING)):
            if self.src.startswith(prefix + '"', self.pos):
                return self._string(kind, len(prefix))
        if self.src.startswith("b'", self.pos):
            return self._char(TokenKind.BYTE, 1)
        return None

    def _raw_string(self, kind: TokenKind, prefix_len: int) -> Token:
        start, line = self.pos, self.line
        self._advance(prefix_len)
        hashes = 0
        while self._at() == "#":
            hashes += 1
            self._advance()
        self._advance()  # opening quote
        terminator = '"' + "#" * hashes
        end = self.src.find(terminator, self.pos)
        if end == -1:
            raise LexError("unterminated raw string literal", line)
        value = self.src[self.pos : end]
        self._advance(end + len(terminator) - self.pos)
        self._suffix()
        return Token(kind, self.src[start : self.pos], line, value=value)

    def _string(self, kind: TokenKind, prefix_len: int) -> Token:
        start, line = self.pos, self.line
        self._advance(prefix_len + 1)
        parts = []
        while True:
            char = self._at()
            if not char:
                raise LexError("unterminated string literal", line)
            if char == '"':
                self._advance()
                break
            if char == "\\":
                parts.append(self._escape(kind))
                continue
            parts.append(char)
            self._advance()
        self._suffix()
        return Token(kind, self.src[start : self.pos], line, value="".join(parts))

    def _quote(self) -> Token:
        following = self._at(1)
        if following == "\\" or self._at(2) == "'":
            return self._char(TokenKind.CHAR, 0)
        if _is_ident_start(following):
            start, line = self.pos, self.line
            self._advance()
            self._read_ident_tail()
            return Token(TokenKind.LIFETIME, self.src[start : self.pos], line)
        return self._char(TokenKind.CHAR, 0)

    def _char(self, kind: TokenKind, prefix_len: int) -> Token:
        start, line = self.pos, self.line
        self._advance(prefix_len + 1)
        char = self._at()
        if not char or char in ("'", "\n"):
            raise LexError("empty or unterminated character literal", line)
        if char == "\\":
            value = self._escape(kind)
        else:
            value = char
            self._advance()
        if self._at() != "'":
            raise LexError("unterminated character literal", line)
        self._advance()
        self._suffix()
        return Token(kind, self.src[start : self.pos], line, value=value)

    def _escape(self, kind: TokenKind) -> str:
        line = self.line
        escape = self._at(1)
        byte_like = kind in (TokenKind.BYTE, TokenKind.BYTE_STRING)
        if escape in _SIMPLE_ESCAPES:
            self._advance(2)
            return _SIMPLE_ESCAPES[escape]
        if escape == "x":
            digits = self.src[self.pos + 2 : self.pos + 4]
            if len(digits) != 2 or any(c not in string.hexdigits for c in digits):
                raise LexError("invalid \\x escape", line)
            code = int(digits, 16)
            if code > 0x7F and not byte_like:
                raise LexError("\\x escape out of range", line)
            self._advance(4)
            return chr(code)
        if escape == "u":
            if byte_like:
                raise LexError("unicode escape in byte literal", line)
            if self._at(2) != "{":
                raise LexError("invalid unicode escape", line)
            close = self.src.find("}", self.pos + 3)
            if close == -1:
                raise LexError("unterminated unicode escape", line)
            digits = self.src[self.pos + 3 : close].replace("_", "")
            if not 1 <= len(digits) <= 6 or any(c not in string.hexdigits for c in digits):
                raise LexError("invalid unicode escape", line)
            code = int(digits, 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise LexError("unicode escape out of range", line)
            self._advance(close + 1 - self.pos)
            return chr(code)
        if escape == "\n" or (escape == "\r" and self._at(2) == "\n"):
            if kind in (TokenKind.CHAR, TokenKind.BYTE):
                raise LexError("line continuation in character literal", line)
            self._advance()
            while self._at() in _CONTINUATION_WHITESPACE and self._at():
                self._advance()
            return ""
        raise LexError(f"unknown character escape {escape!r}", line)

    def _number(self) -> Token:
        start, line = self.pos, self.line
        if self.src.startswith(("0x", "0o", "0b"), self.pos):
            self._advance(2)
            while self._at() and (self._at() in string.hexdigits or self._at() == "_"):
                self._advance()
        else:
            self._digits()
            if (
                self._at() == "."
                and self._at(1) != "."
                and not _is_ident_start(self._at(1))
            ):
                self._advance()
                self._digits()
            if self._at() in ("e", "E") and self._at():
                index = 1
                if self._at(index) in ("+", "-") and self._at(index):
                    index += 1
                if self._at(index) and self._at(index) in string.digits:
                    self._advance(index)
                    self._digits()
        self._suffix()
        return Token(TokenKind.NUMBER, self.src[start : self.pos], line)

    def _digits(self) -> None:
        while self._at() and (self._at() in string.digits or self._at() == "_"):
            self._advance()


def tokenize(source: str) -> list:
    """Split Rust source into a list of token trees, dropping comments."""
    return _Lexer(source).run()


def _render_group(group: Group) -> str:
    inner = render(group.trees)
    if group.delimiter == "{" and inner:
        return "{ " + inner + " }"
    return group.delimiter + inner + group.closing


def render(trees: Iterable[TokenTree]) -> str:
    """Render token trees canonically: one space between trees, none after joint punctuation."""
    parts: list = []
    glued = False
    for tree in trees:
        if parts and not glued:
            parts.append(" ")
        if isinstance(tree, Group):
            parts.append(_render_group(tree))
            glued = False
        else:
            parts.append(tree.text)
            glued = tree.kind is TokenKind.PUNCT and tree.joint
    return "".join(parts)