"""Lexical analysis for tinylisp. Converts raw source text into a lazy, pull-based sequence of tokens.

Formally, the tokens recognized are

```
<quote>       ::= "'"
<open_paren>  ::= "("
<close_paren> ::= ")"
<number>      ::= <digit>+ ("." <digit>+)?        ; may also start with "." (".5"), no sign, no exponent
<string>      ::= '"' <char>* '"'                 ; no escapes, unterminated strings run to end of input
<boolean>     ::= "#t" | "#f"
<identifier>  ::= [a-z_-]+ | "+" | "-" | "*" | "/" | "<" | ">" | "=" | "<=" | ">=" | "/="
```

Whitespace (space, tab, CR, LF) separates tokens and is otherwise ignored. There are no comments. Note that "+ - * /"
are always single-character identifiers, so "-5" is the identifier "-" followed by the number "5".

Any other character produces an ILLEGAL token with empty text: the lexer never halts, the parser decides what to do.
"""

import enum
import logging
from dataclasses import dataclass


logger = logging.getLogger(__name__)


class TokenKind(enum.Enum):
    """Kinds of tokens produced by Lexer."""
    LPAREN = "("
    RPAREN = ")"
    QUOTE = "'"

    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"

    ILLEGAL = "illegal"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    """A single lexical token. start is the offset of the token's first character in the source."""
    kind: TokenKind
    text: str
    start: int = 0


class Lexer:
    """Pull-based tokenizer: every call to next_token consumes and returns exactly one token."""
    WHITESPACE = " \t\r\n"
    OPERATORS = "+-*/"
    COMPARISONS = "<>="
    DIGITS = "0123456789"
    BOOLEANS = ("#t", "#f")

    def __init__(self, source):
        self.source = source
        self.pos = 0
        self.unterminated = []  # offsets of string literals missing their closing quote

    @staticmethod
    def is_identifier_char(char):
        """Whether or not char may appear in a multi-character identifier."""
        return "a" <= char <= "z" or char in "_-"

    def next_token(self):
        """Returns the next token. Once input is exhausted, returns an EOF token on every call."""
        self.skip_whitespace()
        start = self.pos

        if self.pos >= len(self.source):
            return Token(TokenKind.EOF, "", start)

        char = self.source[self.pos]

        if char == "'":
            token = self._advance(TokenKind.QUOTE, 1)
        elif char == "(":
            token = self._advance(TokenKind.LPAREN, 1)
        elif char == ")":
            token = self._advance(TokenKind.RPAREN, 1)
        elif char == "/" and self.source.startswith("/=", self.pos):
            token = self._advance(TokenKind.IDENTIFIER, 2)
        elif char in Lexer.OPERATORS:
            token = self._advance(TokenKind.IDENTIFIER, 1)
        elif char in Lexer.COMPARISONS:
            width = 2 if char in "<>" and self.source.startswith("=", self.pos + 1) else 1
            token = self._advance(TokenKind.IDENTIFIER, width)
        elif self.source[self.pos:self.pos + 2] in Lexer.BOOLEANS:
            token = self._advance(TokenKind.BOOLEAN, 2)
        elif char == "\"":
            token = self._string()
        elif char in Lexer.DIGITS or char == ".":
            token = self._number()
        elif Lexer.is_identifier_char(char):
            end = self.pos
            while end < len(self.source) and Lexer.is_identifier_char(self.source[end]):
                end += 1
            token = self._advance(TokenKind.IDENTIFIER, end - self.pos)
        else:
            self.pos += 1
            token = Token(TokenKind.ILLEGAL, "", start)

        logger.debug("lexed %s %r at %d", token.kind.name, token.text, token.start)
        return token

    def skip_whitespace(self):
        """Moves past any whitespace at the current position."""
        while self.pos < len(self.source) and self.source[self.pos] in Lexer.WHITESPACE:
            self.pos += 1

    def _advance(self, kind, width):
        """Returns a token of kind covering the next width characters, consuming them."""
        token = Token(kind, self.source[self.pos:self.pos + width], self.pos)
        self.pos += width
        return token

    def _string(self):
        """Scans a string literal starting at the opening quote. The token's text excludes the quotes."""
        start = self.pos
        end = self.source.find("\"", start + 1)

        if end == -1:
            logger.debug("unterminated string literal at offset %d", start)
            self.unterminated.append(start)
            self.pos = len(self.source)
            return Token(TokenKind.STRING, self.source[start + 1:], start)

        self.pos = end + 1
        return Token(TokenKind.STRING, self.source[start + 1:end], start)

    def _number(self):
        """Scans digits, optionally followed by '.' and more digits. Validity is checked by the parser."""
        start = self.pos
        while self.pos < len(self.source) and self.source[self.pos] in Lexer.DIGITS:
            self.pos += 1
        if self.pos < len(self.source) and self.source[self.pos] == ".":
            self.pos += 1
            while self.pos < len(self.source) and self.source[self.pos] in Lexer.DIGITS:
                self.pos += 1
        return Token(TokenKind.NUMBER, self.source[start:self.pos], start)

    def depth(self):
        """Consumes the rest of the input and returns how many parentheses are left open (negative if too many were
        closed). Used by the shell to decide whether a line needs a continuation.
        """
        depth = 0
        for token in self:
            if token.kind is TokenKind.LPAREN:
                depth += 1
            elif token.kind is TokenKind.RPAREN:
                depth -= 1
        return depth

    def __iter__(self):
        """Yields tokens up to and including the first EOF token."""
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.EOF:
                return
