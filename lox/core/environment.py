"""Chained variable scopes. An Environment is created for every block and every function call; closures keep their
defining Environment alive for as long as they are reachable.
"""

from lox.lang.error import LoxRuntimeError


class Environment:
    """Maps names to values, with an optional parent. There is no way to delete a binding."""

    def __init__(self, parent=None):
        self.parent = parent
        self.values = {}

    def define(self, name, value, line=None):
        """Binds name in this environment. Redefining a name in the same environment is an error."""
        if name in self.values:
            raise LoxRuntimeError(f"variable already declared: '{name}'", line)
        self.values[name] = value

    def assign(self, name, value, line=None):
        """Rebinds name in the innermost environment that has it."""
        env = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return value
            env = env.parent
        raise LoxRuntimeError(f"variable not declared: '{name}'", line)

    def get(self, name, line=None):
        env = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        raise LoxRuntimeError(f"variable not defined: '{name}'", line)

    def ancestor(self, distance):
        env = self
        for __ in range(distance):
            env = env.parent
        return env

    def get_at(self, distance, name, line=None):
        """Looks name up exactly distance environments out, ignoring any other binding of the same name."""
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxRuntimeError(f"variable not defined: '{name}'", line)
        return values[name]

    def assign_at(self, distance, name, value, line=None):
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxRuntimeError(f"variable not declared: '{name}'", line)
        values[name] = value
        return value

    def __repr__(self):
        content = ", ".join(self.values)
        return f"[{content}]" + (f" < {self.parent!r}" if self.parent is not None else "")
