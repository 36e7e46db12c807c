"""Syntax tree for tinylisp, plus the arena that owns every node produced during one interpreter run.

A SyntaxNode is one of

```
Symbol(name)        ; identifiers, and the `t`/`nil` constants
Number(float)       ; all numbers are 64-bit floats
String(text)
Boolean(bool)       ; #t / #f
List(nodes)         ; immutable, ordered sequence of child nodes
Function(name, fn)  ; native builtins, only created by the registry (never parsed)
```

Nodes are immutable once built and compare structurally, so the same node may safely be returned by `quote` or bound
into several environments.
"""

from abc import ABC, abstractmethod
import logging
import math

from tinylisp.lang.error import OutOfMemory


logger = logging.getLogger(__name__)


def format_number(value):
    """Decimal form of a float: integral values drop their fractional part."""
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


class SyntaxNode(ABC):
    """Superclass that represents any node of a tinylisp syntax tree."""
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value

    @property
    @abstractmethod
    def expr(self):
        """Source-like representation of this node, used in error messages."""

    @property
    def nodes(self):
        """Child nodes. Only Lists have any."""
        return ()

    def display(self, indents=0):
        """Recursively displays the tree rooted at this node in a readable format.

        Format:
        <SyntaxNode>(expr='<expr>', nodes=[
            <SyntaxNode>(expr='<expr>', nodes=[
                ...
                <SyntaxNode>(expr='<expr>')  # <-- if nodes is empty
            ])
        ])
        """
        result = f"{'    ' * indents}{type(self).__name__}(expr='{self.expr}'"
        if self.nodes:
            result += ", nodes=["
            for node in self.nodes:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def __str__(self):
        return self.expr

    def __eq__(self, other):
        return type(other) is type(self) and other.value == self.value

    def __hash__(self):
        return hash((type(self).__name__, self.value))


class Symbol(SyntaxNode):
    __slots__ = ()

    @property
    def name(self):
        return self.value

    @property
    def expr(self):
        return self.value


class Number(SyntaxNode):
    __slots__ = ()

    def __init__(self, value):
        super().__init__(float(value))

    @property
    def expr(self):
        return format_number(self.value)


class String(SyntaxNode):
    __slots__ = ()

    @property
    def expr(self):
        return f"\"{self.value}\""


class Boolean(SyntaxNode):
    __slots__ = ()

    def __init__(self, value):
        super().__init__(bool(value))

    @property
    def expr(self):
        return "#t" if self.value else "#f"


class List(SyntaxNode):
    """Parenthesized list of forms. Children are stored as a tuple so a list can never be emptied or detached from its
    place in the tree.
    """
    __slots__ = ()

    def __init__(self, nodes=()):
        super().__init__(tuple(nodes))

    @property
    def nodes(self):
        return self.value

    @property
    def expr(self):
        return "(" + " ".join(node.expr for node in self.value) + ")"

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def __getitem__(self, idx):
        return self.value[idx]


class Function(SyntaxNode):
    """Native builtin. fn is called as fn(machine, env, args) with args unevaluated."""
    __slots__ = ("name",)

    def __init__(self, name, fn):
        super().__init__(fn)
        self.name = name

    @property
    def fn(self):
        return self.value

    @property
    def expr(self):
        return f"<builtin:{self.name}>"

    def __repr__(self):
        return f"Function({self.name!r})"


class Arena:
    """Tracks every node allocated during an interpreter run. Nodes are released together, either explicitly with
    release or by leaving a `with` block.
    """

    def __init__(self):
        self.nodes = []
        self.released = False

    def new(self, cls, *args):
        """Allocates and tracks a node of type cls. Raises OutOfMemory if the node cannot be allocated."""
        if self.released:
            raise ValueError("arena has already been released")
        try:
            node = cls(*args)
            self.nodes.append(node)
        except MemoryError:
            raise OutOfMemory("could not allocate '{}' node", cls.__name__) from None
        return node

    def release(self):
        """Releases every tracked node. Further allocation is an error."""
        logger.debug("releasing %d nodes", len(self.nodes))
        self.nodes.clear()
        self.released = True

    def __len__(self):
        return len(self.nodes)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


# canonical constants, bound as `t` and `nil` by the builtin registry
T = Symbol("t")
NIL = Symbol("nil")
