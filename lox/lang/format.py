"""Source formatter for the lox language: turns parsed statements back into source text.

Formatting is faithful to the tree, not to the layout it was typed in: grouping parentheses are kept (they are Grouping
nodes), everything else is normalized. Re-parsing formatted text gives back the same tree.

Layout:
    - one statement per line, blocks indented with one tab per level
    - single spaces around binary operators and after keywords
    - "else" on the same line as the end of the then branch
"""

from decimal import Decimal

from lox.core.tree import (Assignment, AssertStmt, Binary, Block, Call, EndMarker, ExpressionStmt, FunctionDecl,
                           Grouping, If, Literal, Logical, PrintStmt, Return, Unary, VarDecl, Variable, While)


def format_number(value):
    """Formats a float the way it can be scanned back: positional notation, no exponent, no trailing zeros."""
    text = "{:f}".format(Decimal(repr(value)))
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class Formatter:
    """Formats statements. indent is the current nesting depth."""
    INDENT = "\t"

    def __init__(self):
        self.indent = 0

    def format(self, stmt):
        """Returns the source text of stmt, indented at the current depth. EndMarker formats as ""."""
        if isinstance(stmt, EndMarker):
            return ""
        return Formatter.INDENT * self.indent + self._stmt(stmt)

    def format_all(self, stmts):
        """Formats a sequence of top-level statements, one per line."""
        return "\n".join(text for text in (self.format(stmt) for stmt in stmts) if text)

    def _stmt(self, stmt):
        """Returns stmt's text without leading indentation. Nested lines are indented relative to self.indent."""
        if isinstance(stmt, ExpressionStmt):
            return f"{self.expr(stmt.expression)};"
        elif isinstance(stmt, PrintStmt):
            return f"print {self.expr(stmt.expression)};"
        elif isinstance(stmt, AssertStmt):
            return f"assert {self.expr(stmt.expression)};"
        elif isinstance(stmt, VarDecl):
            if stmt.initializer is None:
                return f"var {stmt.name.lexeme};"
            return f"var {stmt.name.lexeme} = {self.expr(stmt.initializer)};"
        elif isinstance(stmt, Block):
            return self._block(stmt.statements)
        elif isinstance(stmt, If):
            result = f"if ({self.expr(stmt.condition)}) {self._stmt(stmt.then_branch)}"
            if stmt.else_branch is not None:
                result += f" else {self._stmt(stmt.else_branch)}"
            return result
        elif isinstance(stmt, While):
            return f"while ({self.expr(stmt.condition)}) {self._stmt(stmt.body)}"
        elif isinstance(stmt, FunctionDecl):
            params = ", ".join(param.lexeme for param in stmt.params)
            return f"fun {stmt.name.lexeme}({params}) {self._block(stmt.body)}"
        elif isinstance(stmt, Return):
            if stmt.value is None:
                return "return;"
            return f"return {self.expr(stmt.value)};"
        raise TypeError(f"unknown statement: {stmt!r}")

    def _block(self, stmts):
        if not stmts:
            return "{}"

        self.indent += 1
        try:
            lines = [self.format(stmt) for stmt in stmts]
        finally:
            self.indent -= 1
        return "{\n" + "\n".join(lines) + "\n" + Formatter.INDENT * self.indent + "}"

    def expr(self, expr):
        if isinstance(expr, Literal):
            return Formatter.literal(expr.value)
        elif isinstance(expr, Grouping):
            return f"({self.expr(expr.expression)})"
        elif isinstance(expr, Unary):
            return f"{expr.operator.lexeme}{self.expr(expr.right)}"
        elif isinstance(expr, (Binary, Logical)):
            return f"{self.expr(expr.left)} {expr.operator.lexeme} {self.expr(expr.right)}"
        elif isinstance(expr, Variable):
            return expr.name.lexeme
        elif isinstance(expr, Assignment):
            return f"{expr.name.lexeme} = {self.expr(expr.value)}"
        elif isinstance(expr, Call):
            arguments = ", ".join(self.expr(argument) for argument in expr.arguments)
            return f"{self.expr(expr.callee)}({arguments})"
        raise TypeError(f"unknown expression: {expr!r}")

    @staticmethod
    def literal(value):
        if value is None:
            return "nil"
        elif isinstance(value, bool):
            return "true" if value else "false"
        elif isinstance(value, float):
            return format_number(value)
        return f"\"{value}\""


def format(stmt):
    """Formats a single top-level statement."""
    return Formatter().format(stmt)
