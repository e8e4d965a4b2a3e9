"""Tree-walking evaluation for the lox language.

Statements are executed by _execute, which returns a completion: None when the statement ran to the end, or a
ReturnValue when a return statement is unwinding towards the enclosing call. Blocks, ifs and loops forward a
ReturnValue untouched; only LoxFunction.call consumes it.

Runtime values map onto Python values:
    nil -> None, booleans -> bool, numbers -> float, strings -> str, functions -> LoxCallable
"""

import math
import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass

from lox.core.environment import Environment
from lox.core.tokens import TokenType
from lox.core.tree import (Assignment, AssertStmt, Binary, Block, Call, EndMarker, ExpressionStmt, FunctionDecl,
                           Grouping, If, Literal, Logical, PrintStmt, Return, Unary, VarDecl, Variable, While)
from lox.lang.error import LoxRuntimeError


class LoxCallable(ABC):
    """Anything that can be called from lox code: user functions and natives alike."""

    @property
    @abstractmethod
    def arity(self):
        """Number of arguments the callable expects."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Invokes the callable with already evaluated arguments and returns its result."""


class LoxFunction(LoxCallable):
    """A function declaration paired with the environment it was declared in."""

    def __init__(self, declaration, closure):
        self.declaration = declaration
        self.closure = closure

    @property
    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        env = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            env.define(param.lexeme, argument, param.line)

        completion = interpreter.execute_block(self.declaration.body, env)
        if completion is not None:
            return completion.value
        return None

    def __str__(self):
        return f"<fn {self.declaration.name.lexeme}>"


class NativeFunction(LoxCallable):
    """A function implemented in Python. function receives the argument list."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    @property
    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(arguments)

    def __str__(self):
        return "<native fn>"


@dataclass(frozen=True)
class ReturnValue:
    """Completion of a statement that executed 'return'. line is where the return statement was."""
    value: object
    line: int


def is_truthy(value):
    """nil and false are falsy, everything else (0 and "" included) is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """Equality never fails: nil only equals nil, other values must share a type, callables compare by identity."""
    if left is None:
        return right is None
    if isinstance(left, LoxCallable) or isinstance(right, LoxCallable):
        return left is right
    return type(left) is type(right) and left == right


def is_number(value):
    return isinstance(value, float)


def stringify(value):
    """Textual form of a runtime value, as shown by print."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    return str(value)


def divide(left, right):
    """IEEE-754 division: dividing by zero gives an infinity (or nan for 0/0) instead of an error."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


class Interpreter:
    """Executes resolved statements. resolve must be called (by the Resolver) for every local variable reference in
    a statement before that statement is interpreted.
    """
    ARITHMETIC = {
        TokenType.MINUS: lambda left, right: left - right,
        TokenType.STAR: lambda left, right: left * right,
        TokenType.SLASH: divide,
        TokenType.GREATER: lambda left, right: left > right,
        TokenType.GREATER_EQUAL: lambda left, right: left >= right,
        TokenType.LESS: lambda left, right: left < right,
        TokenType.LESS_EQUAL: lambda left, right: left <= right,
    }

    def __init__(self, output=None):
        self.output = output if output is not None else sys.stdout

        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}  # expr node: binding distance
        self.done = False

        self.globals.define("clock", NativeFunction("clock", 0, lambda arguments: time.time()))

    def resolve(self, expr, depth):
        """Records that expr refers to a variable declared depth scopes out."""
        self.locals[expr] = depth

    def forget(self, exprs):
        """Drops the binding distances of exprs, which will not be evaluated again."""
        for expr in exprs:
            self.locals.pop(expr, None)

    def is_done(self):
        """Whether the end of input has been interpreted."""
        return self.done

    def interpret(self, stmt):
        """Executes stmt. Returns the value of an expression statement, None for anything else. Raises
        LoxRuntimeError; the current environment is always restored before it propagates.
        """
        try:
            if isinstance(stmt, ExpressionStmt):
                return self.evaluate(stmt.expression)

            completion = self._execute(stmt)
            if completion is not None:
                raise LoxRuntimeError("cannot return from top-level code", completion.line)
            return None

        except RecursionError:
            raise LoxRuntimeError("maximum recursion depth exceeded") from None

    @contextmanager
    def scope(self, env):
        """Makes env current for the duration of the with block, whatever way the block is left."""
        previous = self.environment
        self.environment = env
        try:
            yield env
        finally:
            self.environment = previous

    def execute_block(self, statements, env):
        """Runs statements in env and returns the first non-None completion (a ReturnValue), if any."""
        with self.scope(env):
            for stmt in statements:
                completion = self._execute(stmt)
                if completion is not None:
                    return completion
        return None

    # statements

    def _execute(self, stmt):
        if isinstance(stmt, ExpressionStmt):
            self.evaluate(stmt.expression)
        elif isinstance(stmt, PrintStmt):
            print(stringify(self.evaluate(stmt.expression)), file=self.output)
        elif isinstance(stmt, AssertStmt):
            if not is_truthy(self.evaluate(stmt.expression)):
                raise LoxRuntimeError("assertion failed", stmt.keyword.line)
        elif isinstance(stmt, VarDecl):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value, stmt.name.line)
        elif isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self._execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                return self._execute(stmt.else_branch)
        elif isinstance(stmt, While):
            while is_truthy(self.evaluate(stmt.condition)):
                completion = self._execute(stmt.body)
                if completion is not None:
                    return completion
        elif isinstance(stmt, FunctionDecl):
            function = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function, stmt.name.line)
        elif isinstance(stmt, Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return ReturnValue(value, stmt.keyword.line)
        elif isinstance(stmt, EndMarker):
            self.done = True
        else:
            raise TypeError(f"unknown statement: {stmt!r}")
        return None

    # expressions

    def evaluate(self, expr):
        if isinstance(expr, Literal):
            return expr.value
        elif isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        elif isinstance(expr, Unary):
            return self._unary(expr)
        elif isinstance(expr, Binary):
            return self._binary(expr)
        elif isinstance(expr, Logical):
            return self._logical(expr)
        elif isinstance(expr, Variable):
            return self._lookup(expr.name, expr)
        elif isinstance(expr, Assignment):
            return self._assign(expr)
        elif isinstance(expr, Call):
            return self._call(expr)
        raise TypeError(f"unknown expression: {expr!r}")

    def _lookup(self, name, expr):
        if expr in self.locals:
            return self.environment.get_at(self.locals[expr], name.lexeme, name.line)
        return self.globals.get(name.lexeme, name.line)

    def _assign(self, expr):
        value = self.evaluate(expr.value)
        if expr in self.locals:
            return self.environment.assign_at(self.locals[expr], expr.name.lexeme, value, expr.name.line)
        return self.globals.assign(expr.name.lexeme, value, expr.name.line)

    def _logical(self, expr):
        left = self.evaluate(expr.left)
        if expr.operator.kind is TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left
        return self.evaluate(expr.right)

    def _unary(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.kind is TokenType.BANG:
            return not is_truthy(right)

        if not is_number(right):
            raise LoxRuntimeError("operand must be a number", expr.operator.line)
        return -right

    def _binary(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        kind, line = expr.operator.kind, expr.operator.line

        if kind is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        elif kind is TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        elif kind is TokenType.PLUS:
            if is_number(left):
                if not is_number(right):
                    raise LoxRuntimeError("right operand must be a number", line)
                return left + right
            if isinstance(left, str):
                if not isinstance(right, str):
                    raise LoxRuntimeError("right operand must be a string", line)
                return left + right
            raise LoxRuntimeError("left operand must be a number or a string", line)

        if not is_number(left):
            raise LoxRuntimeError("left operand must be a number", line)
        if not is_number(right):
            raise LoxRuntimeError("right operand must be a number", line)
        return Interpreter.ARITHMETIC[kind](left, right)

    def _call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("can only call functions", expr.paren.line)
        if len(arguments) != callee.arity:
            msg = f"expected {callee.arity} arguments but got {len(arguments)}"
            raise LoxRuntimeError(msg, expr.paren.line)

        return callee.call(self, arguments)
