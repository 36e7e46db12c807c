"""Builtin functions and constants of tinylisp, and the registry that binds them into a root environment.

Every builtin is called as fn(machine, env, args), where args are the *unevaluated* argument nodes. Each builtin
decides which arguments to evaluate and in what order; this is what lets `let`, `defvar` and `quote` be ordinary
registry entries rather than cases in the evaluator.

Truth values are the canonical constants: `t` is true, `nil` is false, and a value is truthy only if it is
structurally equal to `t`.
"""

from functools import reduce
import logging
import math
import operator

from tinylisp.core.syntax import NIL, T, Function, List, Number, Symbol, SyntaxNode
from tinylisp.lang.error import InvalidArgument, InvalidParameterCount, InvalidType, SymbolAlreadyDefined
from tinylisp.lang.printer import serialize


logger = logging.getLogger(__name__)


def is_truthy(node):
    """Whether or not node is structurally equal to the canonical true constant."""
    return node == T


def boolean(value):
    """Returns the canonical constant for a Python bool."""
    return T if value else NIL


def expect_count(name, args, count):
    """Raises InvalidParameterCount unless exactly count args were given."""
    if len(args) != count:
        plural = "argument" if count == 1 else "arguments"
        raise InvalidParameterCount(f"'{{}}' expects {count} {plural}, got {len(args)}", name)


def expect_at_least(name, args, count):
    """Raises InvalidParameterCount unless at least count args were given."""
    if len(args) < count:
        plural = "argument" if count == 1 else "arguments"
        raise InvalidParameterCount(f"'{{}}' expects at least {count} {plural}, got {len(args)}", name)


def evaluate_numbers(machine, env, args, name):
    """Evaluates args in order and returns their float values. Raises InvalidType at the first non-number."""
    values = []
    for arg in args:
        result = machine.eval(env, arg)
        if not isinstance(result, Number):
            raise InvalidType("'{}' expects numbers, got '{}'", [name, result])
        values.append(result.value)
    return values


def divide(dividend, divisor):
    """IEEE-754 division: dividing by zero gives a signed infinity (nan for 0/0) instead of raising."""
    if divisor == 0:
        if dividend == 0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)
    return dividend / divisor


def arithmetic(name, op, identity, seeded):
    """Returns a variadic arithmetic builtin. If seeded and more than one argument is given, the first argument is the
    starting accumulator; otherwise the fold starts from identity (so a sole argument is negated/inverted for - and /).
    """

    def builtin(machine, env, args):
        expect_at_least(name, args, 1)
        values = evaluate_numbers(machine, env, args, name)

        if seeded and len(values) > 1:
            result = reduce(op, values[1:], values[0])
        else:
            result = reduce(op, values, identity)
        return machine.new(Number, result)

    builtin.__name__ = builtin.__qualname__ = f"builtin_{op.__name__}"
    return builtin


def comparison(name, op):
    """Returns a strict two-argument numeric comparison builtin."""

    def builtin(machine, env, args):
        expect_count(name, args, 2)
        left, right = evaluate_numbers(machine, env, args, name)
        return boolean(op(left, right))

    builtin.__name__ = builtin.__qualname__ = f"builtin_{op.__name__}"
    return builtin


def and_(machine, env, args):
    """Returns nil at the first falsy argument (later arguments are not evaluated), else t."""
    for arg in args:
        if not is_truthy(machine.eval(env, arg)):
            return NIL
    return T


def or_(machine, env, args):
    """Returns the first truthy argument (later arguments are not evaluated), else nil."""
    for arg in args:
        result = machine.eval(env, arg)
        if is_truthy(result):
            return result
    return NIL


def not_(machine, env, args):
    expect_count("not", args, 1)
    return boolean(not is_truthy(machine.eval(env, args[0])))


def defvar(machine, env, args):
    """(defvar NAME EXPR): binds the value of EXPR to NAME in the current environment and returns it."""
    expect_count("defvar", args, 2)
    name, expr = args

    if not isinstance(name, Symbol):
        raise InvalidArgument("'defvar' expects a symbol name, got '{}'", name)
    if name.name in env:
        raise SymbolAlreadyDefined(name.name)

    value = machine.eval(env, expr)
    env.push(name.name, value)
    logger.debug("defvar '%s'", name.name)
    return value


def let(machine, env, args):
    """(let ((NAME EXPR) ...) BODY...): evaluates BODY in a copy of env extended with the bindings. Each EXPR sees the
    bindings before it. The copy is dropped afterwards, so none of the bindings outlive the form.
    """
    expect_at_least("let", args, 2)
    bindings, *body = args

    if not isinstance(bindings, List):
        raise InvalidArgument("'let' expects a list of bindings, got '{}'", bindings)

    scope = env.clone()
    for binding in bindings:
        if not isinstance(binding, List):
            raise InvalidArgument("'let' binding must be a list, got '{}'", binding)
        if len(binding) != 2:
            raise InvalidParameterCount(f"'let' binding '{{}}' must have 2 elements, got {len(binding)}", binding)

        name, expr = binding
        if not isinstance(name, Symbol):
            raise InvalidArgument("'let' binding name must be a symbol, got '{}'", name)
        if name.name in scope:
            raise SymbolAlreadyDefined(name.name)

        scope.push(name.name, machine.eval(scope, expr))

    logger.debug("let scope with %d bindings", len(bindings))

    result = NIL
    for form in body:
        result = machine.eval(scope, form)
    return result


def quote(machine, env, args):
    """(quote FORM): returns FORM unevaluated. Nodes are immutable, so the quoted form stays in place in the tree."""
    expect_count("quote", args, 1)
    return args[0]


def print_(machine, env, args):
    """(print EXPR...): writes the values of EXPRs separated by spaces, followed by a newline. Returns the last value."""
    expect_at_least("print", args, 1)

    values = [machine.eval(env, arg) for arg in args]
    machine.output.write(" ".join(serialize(value) for value in values) + "\n")
    return values[-1]


class Registry:
    """Immutable table of builtins, built once from an ordered list of (name, implementation-or-constant) pairs.
    Implementations are wrapped in Function nodes; constants are bound as-is.
    """

    def __init__(self, entries):
        self._nodes = {}
        for name, entry in entries:
            if name in self._nodes:
                raise ValueError(f"builtin '{name}' registered twice")
            self._nodes[name] = entry if isinstance(entry, SyntaxNode) else Function(name, entry)

    def names(self):
        return list(self._nodes)

    def items(self):
        return self._nodes.items()

    def __contains__(self, name):
        return name in self._nodes

    def __len__(self):
        return len(self._nodes)


BUILTINS = Registry([
    ("+", arithmetic("+", operator.add, 0.0, seeded=False)),
    ("-", arithmetic("-", operator.sub, 0.0, seeded=True)),
    ("*", arithmetic("*", operator.mul, 1.0, seeded=False)),
    ("/", arithmetic("/", divide, 1.0, seeded=True)),
    (">", comparison(">", operator.gt)),
    (">=", comparison(">=", operator.ge)),
    ("<", comparison("<", operator.lt)),
    ("<=", comparison("<=", operator.le)),
    ("=", comparison("=", operator.eq)),
    ("/=", comparison("/=", operator.ne)),
    ("and", and_),
    ("or", or_),
    ("not", not_),
    ("defvar", defvar),
    ("let", let),
    ("quote", quote),
    ("print", print_),
    ("nil", NIL),
    ("t", T),
])
