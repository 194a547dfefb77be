"""Nginx configuration tokenizer.

Turns raw configuration text into a flat list of tokens. Every token carries
the 1-based line it started on so later stages can report errors with line
numbers. The tokenizer never raises: malformed input degrades to a best
effort token stream.
"""

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    DIRECTIVE = "directive"  # any word: directive name or argument
    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    SEMICOLON = "semicolon"
    COMMENT = "comment"


@dataclass(frozen=True)
class Token:
    type: TokenType
    line: int
    value: str | None = None


_PUNCTUATION = {
    "{": TokenType.BLOCK_START,
    "}": TokenType.BLOCK_END,
    ";": TokenType.SEMICOLON,
}
_QUOTES = ('"', "'")
_WORD_BREAKS = frozenset(";{}")


def tokenize(raw: str) -> list[Token]:
    """Split configuration text into tokens.

    Quoted values lose their surrounding quotes. A quote character preceded
    by a backslash does not close the value. An unterminated quote swallows
    the rest of the input into a single token.
    """
    tokens: list[Token] = []
    line = 1
    i = 0
    n = len(raw)

    while i < n:
        char = raw[i]

        if char == "\n":
            line += 1
            i += 1
            continue

        if char.isspace():
            i += 1
            continue

        if char == "#":
            end = raw.find("\n", i)
            if end == -1:
                end = n
            tokens.append(Token(TokenType.COMMENT, line, raw[i + 1:end].strip()))
            i = end
            continue

        if char in _PUNCTUATION:
            tokens.append(Token(_PUNCTUATION[char], line))
            i += 1
            continue

        start_line = line
        if char in _QUOTES:
            quote = char
            i += 1
            chars: list[str] = []
            while i < n:
                current = raw[i]
                if current == quote and raw[i - 1] != "\\":
                    i += 1
                    break
                if current == "\n":
                    line += 1
                chars.append(current)
                i += 1
            tokens.append(Token(TokenType.DIRECTIVE, start_line, "".join(chars)))
            continue

        start = i
        while i < n and not raw[i].isspace() and raw[i] not in _WORD_BREAKS:
            i += 1
        tokens.append(Token(TokenType.DIRECTIVE, start_line, raw[start:i]))

    return tokens
