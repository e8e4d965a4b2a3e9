"""Static scope resolution. The Resolver walks one statement before it is interpreted, and tells the Interpreter how
many scopes out every local variable reference lives. Because the distance is fixed here, a closure keeps seeing the
binding it was written against, no matter how often it runs or what gets declared later.

Global variables are never tracked: a reference that is not found in any enclosing block or function scope is left
to the Interpreter, which looks it up in the global environment at runtime.
"""

from lox.core.tree import (Assignment, AssertStmt, Binary, Block, Call, EndMarker, ExpressionStmt, FunctionDecl,
                           Grouping, If, Literal, Logical, PrintStmt, Return, Unary, VarDecl, Variable, While)
from lox.lang.error import ResolutionError


class Resolver:
    """Computes binding distances for an Interpreter."""

    def __init__(self, interpreter):
        self.interpreter = interpreter
        self.scopes = []              # stack of {name: whether its initializer has finished}
        self._initializing = set()    # globals whose initializer is being resolved
        self._functions = 0           # depth of function bodies being resolved
        self._recorded = []           # every node given a distance by the current statement
        self._transient = []          # those outside any function body

    def resolve(self, stmt):
        """Resolves stmt and returns the nodes it resolved outside any function body: their distances are only needed
        while stmt itself runs, and can be dropped with Interpreter.forget afterwards. Raises ResolutionError, after
        dropping every distance recorded for stmt; the Resolver is ready for the next statement either way.
        """
        self._recorded, self._transient = [], []
        try:
            self._resolve_stmt(stmt)
            return self._transient
        except ResolutionError:
            self.interpreter.forget(self._recorded)
            raise
        except RecursionError:
            self.interpreter.forget(self._recorded)
            raise ResolutionError("maximum nesting depth exceeded") from None
        finally:
            self.scopes = []
            self._initializing = set()
            self._functions = 0

    # statements

    def _resolve_stmt(self, stmt):
        if isinstance(stmt, (ExpressionStmt, PrintStmt, AssertStmt)):
            self._resolve_expr(stmt.expression)
        elif isinstance(stmt, VarDecl):
            self._var_declaration(stmt)
        elif isinstance(stmt, Block):
            self.scopes.append({})
            self._resolve_stmts(stmt.statements)
            self.scopes.pop()
        elif isinstance(stmt, If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, While):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.body)
        elif isinstance(stmt, FunctionDecl):
            self._declare(stmt.name)
            self._define(stmt.name)
            self._function(stmt)
        elif isinstance(stmt, Return):
            if stmt.value is not None:
                self._resolve_expr(stmt.value)
        elif not isinstance(stmt, EndMarker):
            raise TypeError(f"unknown statement: {stmt!r}")

    def _resolve_stmts(self, stmts):
        for stmt in stmts:
            self._resolve_stmt(stmt)

    def _var_declaration(self, stmt):
        self._declare(stmt.name)
        if stmt.initializer is not None:
            if not self.scopes:
                self._initializing.add(stmt.name.lexeme)
            self._resolve_expr(stmt.initializer)
            self._initializing.discard(stmt.name.lexeme)
        self._define(stmt.name)

    def _function(self, stmt):
        """Parameters and body share one scope, matching the single environment a call creates."""
        self.scopes.append({})
        self._functions += 1
        for param in stmt.params:
            self._declare(param)
            self._define(param)
        self._resolve_stmts(stmt.body)
        self._functions -= 1
        self.scopes.pop()

    # expressions

    def _resolve_expr(self, expr):
        if isinstance(expr, Variable):
            self._variable(expr)
        elif isinstance(expr, Assignment):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
        elif isinstance(expr, Unary):
            self._resolve_expr(expr.right)
        elif isinstance(expr, Grouping):
            self._resolve_expr(expr.expression)
        elif isinstance(expr, Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)
        elif not isinstance(expr, Literal):
            raise TypeError(f"unknown expression: {expr!r}")

    def _variable(self, expr):
        name = expr.name.lexeme
        in_initializer = self.scopes[-1].get(name) is False if self.scopes else name in self._initializing
        if in_initializer:
            raise ResolutionError("cannot read variable in its own initializer", expr.name.line)
        self._resolve_local(expr, expr.name)

    def _resolve_local(self, expr, name):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.interpreter.resolve(expr, depth)
                self._recorded.append(expr)
                if not self._functions:
                    self._transient.append(expr)
                return

    # scopes

    def _declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            raise ResolutionError("variable with this name already declared in this scope", name.line)
        scope[name.lexeme] = False

    def _define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True
