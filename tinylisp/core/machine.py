"""Tree-walking evaluator for tinylisp.

A Machine is one interpreter instance: it owns the arena holding every node of the run, the root environment (built
from the builtin registry) and the output sink used by `print`. Evaluation rules:

```
Number, String, Boolean, Function  ->  the node itself
Symbol                             ->  its binding, else SymbolUndefined
()                                 ->  nil
(head args...)  head is a Symbol   ->  if head evaluates to a Function, fn(machine, env, args) with args unevaluated;
                                       otherwise the value of head
(head args...)  otherwise          ->  the value of head
```

There are no lambdas, so the only callable values are the registry's builtins.
"""

import logging
import sys

from tinylisp.core.builtins import BUILTINS
from tinylisp.core.environment import Environment
from tinylisp.core.parser import Parser
from tinylisp.core.syntax import NIL, Arena, Function, List, Symbol
from tinylisp.lang.error import EvaluationDepthExceeded, SymbolUndefined


logger = logging.getLogger(__name__)


class Machine:
    """Evaluates tinylisp programs. Use as a context manager so the arena is released on every exit path."""
    MAX_DEPTH = 200  # maximum nesting of eval calls

    def __init__(self, output=None, max_depth=None, registry=BUILTINS):
        self.output = output if output is not None else sys.stdout
        self.max_depth = max_depth if max_depth is not None else Machine.MAX_DEPTH
        self.registry = registry

        self.arena = Arena()
        self.context = Environment.from_registry(registry)  # root environment
        self.depth = 0

    def new(self, cls, *args):
        """Allocates a node in this machine's arena."""
        return self.arena.new(cls, *args)

    def parse(self, source):
        """Parses source into a List of top-level forms without evaluating it. Raises ParseError."""
        return Parser(source, self.arena).parse()

    def run(self, source):
        """Parses source and evaluates each top-level form in the root environment. Returns the value of the last form,
        or nil if there are none.
        """
        return self.execute(self.parse(source))

    def execute(self, program):
        """Evaluates each form of a parsed program in sequence in the root environment, returning the last value."""
        result = NIL
        for form in program:
            result = self.eval(self.context, form)
        return result

    def eval(self, env, node):
        """Reduces node to a value in env. Errors from nested evaluation or builtins propagate unchanged."""
        if self.depth >= self.max_depth:
            raise EvaluationDepthExceeded("forms are nested deeper than {} levels", str(self.max_depth))

        self.depth += 1
        try:
            return self._eval(env, node)
        except RecursionError:
            raise EvaluationDepthExceeded("forms are nested deeper than the {} stack allows", "python") from None
        finally:
            self.depth -= 1

    def _eval(self, env, node):
        logger.debug("eval %s", node)

        if isinstance(node, Symbol):
            value = env.get(node.name)
            if value is None:
                raise SymbolUndefined(node.name)
            return value

        if isinstance(node, List):
            if not node.nodes:
                return NIL

            head, args = node.nodes[0], node.nodes[1:]
            value = self.eval(env, head)

            if isinstance(head, Symbol) and isinstance(value, Function):
                logger.debug("calling %s with %d arguments", value.name, len(args))
                return value.fn(self, env, args)
            return value

        return node

    def close(self):
        """Releases every node allocated by this machine."""
        self.arena.release()

    @property
    def closed(self):
        return self.arena.released

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def run(source, output=None, max_depth=None):
    """Runs source in a fresh machine and returns the value of its last form. The machine is released afterwards, so
    the result should be consumed (e.g. serialized) by the caller rather than fed back into another machine.
    """
    with Machine(output=output, max_depth=max_depth) as machine:
        return machine.run(source)
