"""Renders syntax trees as parenthesized prefix expressions, e.g. `1 + 2 + 3` becomes `(+ (+ 1 2) 3)`. Used to check
parse trees for structure (associativity, grouping) without comparing nodes one attribute at a time.
"""

from lox.core.interpreter import stringify
from lox.core.tree import (Assignment, AssertStmt, Binary, Block, Call, EndMarker, ExpressionStmt, FunctionDecl,
                           Grouping, If, Literal, Logical, PrintStmt, Return, Unary, VarDecl, Variable, While)


def parenthesize(name, *parts):
    return "(" + " ".join([name] + [part for part in parts if part]) + ")"


def print_expr(expr):
    if isinstance(expr, Literal):
        if isinstance(expr.value, str):
            return f"\"{expr.value}\""
        return stringify(expr.value)
    elif isinstance(expr, Grouping):
        return parenthesize("group", print_expr(expr.expression))
    elif isinstance(expr, Unary):
        return parenthesize(expr.operator.lexeme, print_expr(expr.right))
    elif isinstance(expr, (Binary, Logical)):
        return parenthesize(expr.operator.lexeme, print_expr(expr.left), print_expr(expr.right))
    elif isinstance(expr, Variable):
        return expr.name.lexeme
    elif isinstance(expr, Assignment):
        return parenthesize("=", expr.name.lexeme, print_expr(expr.value))
    elif isinstance(expr, Call):
        return parenthesize("call", print_expr(expr.callee), *(print_expr(argument) for argument in expr.arguments))
    raise TypeError(f"unknown expression: {expr!r}")


def print_stmt(stmt):
    if isinstance(stmt, ExpressionStmt):
        return parenthesize(";", print_expr(stmt.expression))
    elif isinstance(stmt, PrintStmt):
        return parenthesize("print", print_expr(stmt.expression))
    elif isinstance(stmt, AssertStmt):
        return parenthesize("assert", print_expr(stmt.expression))
    elif isinstance(stmt, VarDecl):
        initializer = print_expr(stmt.initializer) if stmt.initializer is not None else ""
        return parenthesize("var", stmt.name.lexeme, initializer)
    elif isinstance(stmt, Block):
        return parenthesize("block", *(print_stmt(inner) for inner in stmt.statements))
    elif isinstance(stmt, If):
        else_branch = print_stmt(stmt.else_branch) if stmt.else_branch is not None else ""
        return parenthesize("if", print_expr(stmt.condition), print_stmt(stmt.then_branch), else_branch)
    elif isinstance(stmt, While):
        return parenthesize("while", print_expr(stmt.condition), print_stmt(stmt.body))
    elif isinstance(stmt, FunctionDecl):
        params = "(" + " ".join(param.lexeme for param in stmt.params) + ")"
        return parenthesize("fun", stmt.name.lexeme, params, *(print_stmt(inner) for inner in stmt.body))
    elif isinstance(stmt, Return):
        value = print_expr(stmt.value) if stmt.value is not None else ""
        return parenthesize("return", value)
    elif isinstance(stmt, EndMarker):
        return "(end)"
    raise TypeError(f"unknown statement: {stmt!r}")
