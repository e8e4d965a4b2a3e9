"""Abstract syntax tree for the lox language.

The node classes form two closed families, Expr and Stmt. Nothing else should subclass them: the Resolver, the
Interpreter, the Formatter and the tree printer each dispatch over exactly these classes and raise on anything else.

Nodes are immutable, and compare/hash by identity: the Interpreter keys binding distances by node, so two textually
identical variable references in different places must stay distinct.
"""

from abc import ABC
from dataclasses import dataclass
from typing import List, Optional

from lox.core.tokens import Token


class Expr(ABC):
    """Superclass of every expression node."""


class Stmt(ABC):
    """Superclass of every statement node."""


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: object


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """'and'/'or'. Kept apart from Binary because the right operand is evaluated lazily."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


@dataclass(frozen=True, eq=False)
class Assignment(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    """paren is the closing parenthesis, used to report errors on the line where the call ends."""
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True, eq=False)
class ExpressionStmt(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class PrintStmt(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class AssertStmt(Stmt):
    keyword: Token
    expression: Expr


@dataclass(frozen=True, eq=False)
class VarDecl(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class FunctionDecl(Stmt):
    """body holds the statements of the function's block. They run directly in the call's environment, next to the
    parameters.
    """
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True, eq=False)
class EndMarker(Stmt):
    """Produced once the parser reaches end of input."""
