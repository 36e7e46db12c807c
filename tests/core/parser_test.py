import unittest

from tinylisp.core.lexical import TokenKind
from tinylisp.core.parser import Parser, parse
from tinylisp.core.syntax import Arena, Boolean, List, Number, String, Symbol
from tinylisp.lang.error import ParseError


def first(source):
    """Returns the first top-level form of source."""
    return parse(source).nodes[0]


class ParserTestCase(unittest.TestCase):

    def test_atoms(self):
        cases = {
            "42": Number(42),
            "123.456": Number(123.456),
            "foo": Symbol("foo"),
            "\"hello\"": String("hello"),
            "#t": Boolean(True),
            "#f": Boolean(False),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, first(case), case)

    def test_lists(self):
        cases = {
            "()": List(),
            "(+ 1 2)": List([Symbol("+"), Number(1), Number(2)]),
            "(foo 42 123.456 \"bar\" #t)": List([
                Symbol("foo"), Number(42), Number(123.456), String("bar"), Boolean(True)
            ]),
            "(foo (bar 42) (baz 123))": List([
                Symbol("foo"),
                List([Symbol("bar"), Number(42)]),
                List([Symbol("baz"), Number(123)])
            ]),
            "(())": List([List()]),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, first(case), case)

    def test_nested_let(self):
        node = first("(let ((x 10)(y 15)) (+ x y))")

        self.assertEqual(3, len(node))
        self.assertEqual(Symbol("let"), node[0])
        self.assertEqual(List([List([Symbol("x"), Number(10)]), List([Symbol("y"), Number(15)])]), node[1])
        self.assertEqual(List([Symbol("+"), Symbol("x"), Symbol("y")]), node[2])

    def test_quote(self):
        cases = {
            "'a": List([Symbol("quote"), Symbol("a")]),
            "'(1 2)": List([Symbol("quote"), List([Number(1), Number(2)])]),
            "''a": List([Symbol("quote"), List([Symbol("quote"), Symbol("a")])]),
            "'()": List([Symbol("quote"), List()]),
            "(a 'b c)": List([Symbol("a"), List([Symbol("quote"), Symbol("b")]), Symbol("c")]),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, first(case), case)

        # a quote consumes exactly one form
        self.assertEqual(2, len(parse("'a b")))

    def test_top_level(self):
        self.assertEqual(List(), parse(""))
        self.assertEqual(List(), parse("  \n "))
        self.assertEqual(List([Number(1), Symbol("x"), List([Symbol("y")])]), parse("1 x (y)"))

    def test_parse_errors(self):
        cases = {
            "(+ 1 2": (TokenKind.LPAREN, 0),
            "(a (b)": (TokenKind.LPAREN, 0),
            "((a) (b": (TokenKind.LPAREN, 5),
            ")": (TokenKind.RPAREN, 0),
            "(a))": (TokenKind.RPAREN, 3),
            "'": (TokenKind.EOF, 1),
            "(')": (TokenKind.RPAREN, 2),
            "@": (TokenKind.ILLEGAL, 0),
            "(defvar X 1)": (TokenKind.ILLEGAL, 8),
            ".": (TokenKind.NUMBER, 0),
            "(1 . 2)": (TokenKind.NUMBER, 3),
        }
        for case, (kind, position) in cases.items():
            with self.assertRaises(ParseError, msg=case) as context:
                parse(case)
            self.assertIs(kind, context.exception.token.kind, case)
            self.assertEqual(position, context.exception.position, case)

    def test_parse_error_is_not_partial(self):
        arena = Arena()
        parser = Parser("(+ 1 2) (+ 1 2", arena)
        with self.assertRaises(ParseError):
            parser.parse()

    def test_deep_nesting(self):
        depth = 5000
        program = parse("(" * depth + ")" * depth)

        node = program.nodes[0]
        for __ in range(depth - 1):
            node = node.nodes[0]
        self.assertEqual(List(), node)

    def test_chained_quotes(self):
        depth = 3000
        node = first("'" * depth + "a")
        for __ in range(depth):
            self.assertEqual(2, len(node))
            self.assertEqual(Symbol("quote"), node[0])
            node = node[1]
        self.assertEqual(Symbol("a"), node)

        node = first("'(" * depth + ")" * depth)
        for __ in range(depth):
            self.assertEqual(Symbol("quote"), node[0])
            node = node[1]
            node = node[0] if len(node) else node
        self.assertEqual(List(), node)

    def test_unfinished_quote_chains(self):
        cases = {
            "'" * 3000: (TokenKind.EOF, 3000),
            "(a ''": (TokenKind.EOF, 5),
            "('')": (TokenKind.RPAREN, 3),
        }
        for case, (kind, position) in cases.items():
            with self.assertRaises(ParseError, msg=case[:10]) as context:
                parse(case)
            self.assertIs(kind, context.exception.token.kind, case[:10])
            self.assertEqual(position, context.exception.position, case[:10])

    def test_nodes_are_tracked_by_arena(self):
        arena = Arena()
        parse("(a b)", arena)
        self.assertEqual(4, len(arena))  # a, b, (a b), top-level list

        arena = Arena()
        parse("'x", arena)
        self.assertEqual(4, len(arena))  # x, quote, (quote x), top-level list


if __name__ == '__main__':
    unittest.main()
