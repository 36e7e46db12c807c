"""Parser for tinylisp: builds a syntax tree from the tokens of a Lexer.

```
<program> ::= <form>*
<form>    ::= <atom> | <list>
<list>    ::= "(" <form>* ")"
            | "'" <form>          ; sugar for (quote <form>), never kept as a token in the tree
<atom>    ::= <number> | <string> | <identifier> | <boolean>
```

Open lists and pending quote-marks live on an explicit stack instead of the Python call stack, so no amount of nesting
or chained quotes can raise RecursionError. The parser either returns a complete tree or raises ParseError: there is
no error recovery.
"""

import logging

from tinylisp.core.lexical import Lexer, TokenKind
from tinylisp.core.syntax import Arena, Boolean, List, Number, String, Symbol
from tinylisp.lang.error import ParseError


logger = logging.getLogger(__name__)


class Parser:
    """Consumes a token stream with one token of lookahead. All nodes are allocated through arena."""

    def __init__(self, source, arena=None):
        self.source = source
        self.arena = arena if arena is not None else Arena()
        self.lexer = Lexer(source)
        self.current_token = self.lexer.next_token()

    def parse(self):
        """Consumes the entire token stream and returns a List whose nodes are the program's top-level forms."""
        forms = self._read()
        logger.debug("parsed %d top-level forms", len(forms))
        return self.arena.new(List, forms)

    def _next_token(self):
        self.current_token = self.lexer.next_token()

    def _read(self):
        """Reads forms until end of input and returns every top-level form.

        Each stack frame is (enclosing nodes, opening token), where the opening token is either a "(" waiting for its
        ")" or a "'" waiting for exactly one form. A quote frame is closed as soon as its form is complete.
        """
        current = []  # nodes of the innermost open frame
        stack = []

        while True:
            token = self.current_token
            kind = token.kind

            if kind is TokenKind.LPAREN or kind is TokenKind.QUOTE:
                self._next_token()
                stack.append((current, token))
                current = []
                continue

            if kind is TokenKind.RPAREN:
                if not stack:
                    raise ParseError("unexpected '{}'", token, self.source)
                if stack[-1][1].kind is TokenKind.QUOTE:
                    raise ParseError("quote expects a form, got '{}'", token, self.source)
                self._next_token()
                node = self.arena.new(List, current)
                current, __ = stack.pop()

            elif kind is TokenKind.NUMBER:
                node = self._number(token)
                self._next_token()

            elif kind is TokenKind.IDENTIFIER:
                node = self.arena.new(Symbol, token.text)
                self._next_token()

            elif kind is TokenKind.STRING:
                node = self.arena.new(String, token.text)
                self._next_token()

            elif kind is TokenKind.BOOLEAN:
                node = self.arena.new(Boolean, token.text == "#t")
                self._next_token()

            elif kind is TokenKind.EOF:
                if stack:
                    __, opening = stack[-1]
                    if opening.kind is TokenKind.QUOTE:
                        raise ParseError("quote expects a form, got '{}'", token, self.source)
                    raise ParseError("'{}' is never closed", opening, self.source)
                return current

            else:
                raise ParseError("unexpected character '{}'", token, self.source)

            current.append(node)

            # a completed form closes every quote frame waiting on it
            while stack and stack[-1][1].kind is TokenKind.QUOTE:
                quoted, = current
                current, __ = stack.pop()
                current.append(self.arena.new(List, [self.arena.new(Symbol, "quote"), quoted]))

    def _number(self, token):
        """Converts a NUMBER token to a Number node. Raises ParseError if token is not a valid float (e.g. '.')."""
        try:
            value = float(token.text)
        except ValueError:
            raise ParseError("'{}' is not a valid number", token, self.source) from None
        return self.arena.new(Number, value)


def parse(source, arena=None):
    """Shortcut for Parser(source, arena).parse()."""
    return Parser(source, arena).parse()
