"""Splitting source text into tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from c33.scanner import Location, Scanner


class TokenType(str, Enum):
    EOF = "EOF"
    IDENT = "Identifier"
    KEYWORD = "Keyword"
    NUMBER = "Number"
    STRING = "String"
    LPAREN = "LeftParen"
    RPAREN = "RightParen"
    LBRACE = "LeftBrace"
    RBRACE = "RightBrace"
    COMMA = "Comma"
    ARROW = "Arrow"
    COLON = "Colon"
    AT = "At"
    EQUALS = "Equals"
    PLUS = "Plus"

    def __str__(self) -> str:
        return self.value


class Keyword(str, Enum):
    FUNC = "func"
    RETURN = "return"
    INT = "int"
    STRING = "string"
    VOID = "void"
    PACKAGE = "package"

    def __str__(self) -> str:
        return self.value


@dataclass
class Token:
    kind: TokenType
    location: Location = field(default_factory=Location)
    keyword: Optional[Keyword] = None
    identifier: str = ""
    string_val: str = ""
    number_val: int = 0

    def __str__(self) -> str:
        where = f" @ {self.location}"
        if self.kind == TokenType.IDENT:
            return f"Identifier({self.identifier}){where}"
        if self.kind == TokenType.KEYWORD:
            return f"Keyword({self.keyword}){where}"
        if self.kind == TokenType.NUMBER:
            return f"Number({self.number_val}){where}"
        if self.kind == TokenType.STRING:
            return f'String("{self.string_val}"){where}'
        return f"{self.kind.value}{where}"


def check_keyword(ident: str) -> Optional[Keyword]:
    """Return the keyword spelled by ``ident``, or None."""
    try:
        return Keyword(ident)
    except ValueError:
        return None


_PUNCTUATION = {
    ord("="): TokenType.EQUALS,
    ord("("): TokenType.LPAREN,
    ord(")"): TokenType.RPAREN,
    ord("{"): TokenType.LBRACE,
    ord("}"): TokenType.RBRACE,
    ord(","): TokenType.COMMA,
    ord(":"): TokenType.COLON,
    ord("@"): TokenType.AT,
    ord("+"): TokenType.PLUS,
}

_SLASH = ord("/")
_MINUS = ord("-")
_GREATER = ord(">")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_LINE_ENDS = frozenset(b"\n\r")
_WHITESPACE = frozenset(b" \t\n\r")
_DIGITS = frozenset(b"0123456789")
_ALPHA = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_ALNUM = _ALPHA | _DIGITS

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class Tokenizer:
    """Produces tokens from a scanner.

    A token that is cut short by the end of input (including an identifier
    or number at the very end) is dropped.
    """

    def __init__(self, scanner: Scanner) -> None:
        self.scanner = scanner

    def tokens(self) -> list[Token]:
        """Read all remaining tokens."""
        result: list[Token] = []
        while True:
            try:
                result.append(self._next())
            except EOFError:
                return result

    def _next(self) -> Token:
        scan = self.scanner
        buf = bytearray()

        while True:
            c = scan.next()
            start = scan.location()

            kind = _PUNCTUATION.get(c)
            if kind is not None:
                return Token(kind, start, string_val=chr(c))

            if c == _SLASH:
                if scan.next() == _SLASH:
                    while scan.next() not in _LINE_ENDS:
                        pass
                else:
                    scan.unread(1)
            elif c == _MINUS:
                following = scan.next()
                if following == _GREATER:
                    return Token(TokenType.ARROW, start, string_val="->")
                if following in _DIGITS:
                    buf.append(_MINUS)
                scan.unread(1)
            elif c in _WHITESPACE:
                continue
            elif c == _QUOTE:
                while (c := scan.next()) != _QUOTE:
                    if c == _BACKSLASH:
                        buf += bytes([_BACKSLASH, scan.next()])
                    else:
                        buf.append(c)
                return Token(TokenType.STRING, start, string_val=buf.decode("utf-8", errors="replace"))
            elif c in _DIGITS:
                buf.append(c)
                self._read_while(buf, _DIGITS)
                text = buf.decode("ascii")
                number = int(text)
                if not _INT64_MIN <= number <= _INT64_MAX:
                    raise ValueError(f"number out of range: {text}")
                return Token(TokenType.NUMBER, start, number_val=number, string_val=text)
            elif c in _ALPHA:
                buf.append(c)
                self._read_while(buf, _ALNUM)
                text = buf.decode("ascii")
                keyword = check_keyword(text)
                if keyword is not None:
                    return Token(TokenType.KEYWORD, start, keyword=keyword, identifier=text, string_val=text)
                return Token(TokenType.IDENT, start, identifier=text, string_val=text)

    def _read_while(self, buf: bytearray, allowed: frozenset) -> None:
        while True:
            c = self.scanner.next()
            if c not in allowed:
                self.scanner.unread(1)
                return
            buf.append(c)