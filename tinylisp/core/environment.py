"""Environments: name -> node bindings.

A scope is a full, independent copy of its parent's bindings rather than a link to it. Constructs such as `let` clone
the calling environment, bind into the clone, evaluate, and drop the clone, so the parent is never mutated. No name may
be bound twice in one environment, which (because scopes are copies) also forbids shadowing a global from inside a
scope.
"""

import logging

from tinylisp.lang.error import SymbolAlreadyDefined


logger = logging.getLogger(__name__)


class Environment:
    """Mutable mapping of symbol names to nodes. The nodes themselves are owned by the machine's arena."""

    def __init__(self, bindings=None):
        self.bindings = dict(bindings) if bindings else {}

    @classmethod
    def from_registry(cls, registry):
        """Returns a root environment with one binding per registry entry."""
        env = cls()
        for name, node in registry.items():
            env.push(name, node)
        return env

    def clone(self):
        """Returns an independent copy of all current bindings."""
        return Environment(self.bindings)

    def push(self, name, value):
        """Binds name to value. Raises SymbolAlreadyDefined if name is already bound in this environment."""
        if name in self.bindings:
            raise SymbolAlreadyDefined(name)
        logger.debug("bound '%s' to %s", name, value)
        self.bindings[name] = value

    def get(self, name):
        """Returns the node bound to name, or None if it is unbound."""
        return self.bindings.get(name)

    def __contains__(self, name):
        return name in self.bindings

    def __len__(self):
        return len(self.bindings)

    def __iter__(self):
        return iter(self.bindings)

    def __repr__(self):
        return f"Environment({', '.join(self.bindings)})"
