"""Serialization of evaluated values, as written by `print` and by the command-line driver."""

from tinylisp.core.syntax import NIL, Boolean, Function, List, Number, String, Symbol, format_number


def serialize_atom(node):
    """Returns the printed form of a non-list node."""
    if node == NIL:
        return "nil"
    if isinstance(node, Number):
        return format_number(node.value)
    if isinstance(node, String):
        return node.value
    if isinstance(node, Symbol):
        return node.name
    if isinstance(node, (Boolean, Function)):
        return node.expr
    raise TypeError(f"cannot serialize {node!r}")


def serialize(node):
    """Returns the printed form of node: numbers in decimal, strings raw (no quotes), symbols by name, booleans as
    #t/#f, lists parenthesized with single spaces, and the nil constant as 'nil'.

    Lists are walked with an explicit stack, so any value the parser can build can also be printed.
    """
    parts = []
    pending = [(None, node)]  # (text, None) pairs are emitted as-is, (None, node) pairs are printed

    while pending:
        text, item = pending.pop()
        if text is not None:
            parts.append(text)
        elif isinstance(item, List):
            parts.append("(")
            pending.append((")", None))
            for idx, child in enumerate(reversed(item.nodes)):
                if idx:
                    pending.append((" ", None))
                pending.append((None, child))
        else:
            parts.append(serialize_atom(item))

    return "".join(parts)
