import io
import sys
import unittest

from lox.core.interpreter import Interpreter
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.core.scanner import Scanner
from lox.core.tree import EndMarker
from lox.lang.error import ResolutionError


def resolve(src):
    """Resolves every statement of src with a fresh Interpreter and returns (interpreter, statements)."""
    interpreter = Interpreter(io.StringIO())
    resolver = Resolver(interpreter)
    parser = Parser(Scanner(io.StringIO(src)))

    stmts = []
    while True:
        stmt = parser.next_statement()
        if isinstance(stmt, EndMarker):
            return interpreter, stmts
        resolver.resolve(stmt)
        stmts.append(stmt)


class ResolverTestCase(unittest.TestCase):

    def test_errors(self):
        should_fail = {
            "var a = a;": "cannot read variable in its own initializer",
            "{ var a = a; }": "cannot read variable in its own initializer",
            "var a = 1; { var a = a + 1; }": "cannot read variable in its own initializer",
            "{ var a = 1; { var a = a; } }": "cannot read variable in its own initializer",
            "{ var x = 1; var x = 2; }": "variable with this name already declared in this scope",
            "fun f(a, a) {}": "variable with this name already declared in this scope",
            "fun f(a) { var a = 1; }": "variable with this name already declared in this scope",
            "{ fun g() {} var g; }": "variable with this name already declared in this scope",
        }
        for case, expected in should_fail.items():
            with self.assertRaisesRegex(ResolutionError, expected, msg=case):
                resolve(case)

    def test_allowed(self):
        should_pass = [
            "var x = 1; var x = 2;",       # global redeclaration is a runtime matter
            "var a = 1; { var b = a; }",
            "{ var a = 1; { var a = 2; } }",
            "fun f() { return f(); }",
            "fun f(a) { { var a = 1; } }",
            "print undefined;",
            "{ var a; a = a; }",
        ]
        for case in should_pass:
            resolve(case)

    def test_globals_are_not_recorded(self):
        interpreter, __ = resolve("var a = 1; print a; a = 2; fun f() { return a; }")
        self.assertEqual({}, interpreter.locals)

    def test_distances(self):
        interpreter, stmts = resolve("{ var a = 1; { print a; a = 2; } }")
        inner = stmts[0].statements[1]
        read = inner.statements[0].expression
        write = inner.statements[1].expression
        self.assertEqual(1, interpreter.locals[read])
        self.assertEqual(1, interpreter.locals[write])

    def test_shadowing_picks_innermost(self):
        interpreter, stmts = resolve("{ var a = 1; { var a = 2; print a; } print a; }")
        outer = stmts[0]
        inner_read = outer.statements[1].statements[1].expression
        outer_read = outer.statements[2].expression
        self.assertEqual(0, interpreter.locals[inner_read])
        self.assertEqual(0, interpreter.locals[outer_read])

    def test_parameters_share_body_scope(self):
        interpreter, stmts = resolve("fun f(x) { var y = x; return y; }")
        body = stmts[0].body
        self.assertEqual(0, interpreter.locals[body[0].initializer])
        self.assertEqual(0, interpreter.locals[body[1].value])

    def test_closure_distance(self):
        src = "fun outer() { var n = 0; fun inner() { n = n + 1; return n; } return inner; }"
        interpreter, stmts = resolve(src)
        inner = stmts[0].body[1]
        assignment = inner.body[0].expression
        self.assertEqual(1, interpreter.locals[assignment])
        self.assertEqual(1, interpreter.locals[assignment.value.left])
        self.assertEqual(1, interpreter.locals[inner.body[1].value])

    def test_same_name_different_nodes(self):
        interpreter, stmts = resolve("{ var a = 1; print a; { print a; } }")
        first = stmts[0].statements[1].expression
        second = stmts[0].statements[2].statements[0].expression
        self.assertEqual(0, interpreter.locals[first])
        self.assertEqual(1, interpreter.locals[second])

    def test_state_reset_after_error(self):
        interpreter = Interpreter(io.StringIO())
        resolver = Resolver(interpreter)
        parser = Parser(Scanner(io.StringIO("{ var a = 1; { var a = a; } } var b = b;")))

        with self.assertRaises(ResolutionError):
            resolver.resolve(parser.next_statement())
        self.assertEqual([], resolver.scopes)

        with self.assertRaisesRegex(ResolutionError, "own initializer"):
            resolver.resolve(parser.next_statement())

    def test_nesting_too_deep(self):
        interpreter = Interpreter(io.StringIO())
        resolver = Resolver(interpreter)
        chain = " + ".join(["a"] * (2 * sys.getrecursionlimit()))
        parser = Parser(Scanner(io.StringIO("{ var a = 1; print " + chain + "; } { var b = 2; print b; }")))

        with self.assertRaisesRegex(ResolutionError, "maximum nesting depth exceeded"):
            resolver.resolve(parser.next_statement())
        self.assertEqual({}, interpreter.locals)
        self.assertEqual([], resolver.scopes)

        resolver.resolve(parser.next_statement())
        self.assertEqual([0], list(interpreter.locals.values()))

    def test_failed_statement_leaves_no_distances(self):
        interpreter, __ = resolve("{ var a = 1; print a; }")
        self.assertEqual(1, len(interpreter.locals))

        interpreter = Interpreter(io.StringIO())
        parser = Parser(Scanner(io.StringIO("{ var a = 1; print a; { print a; } var a = 2; }")))
        with self.assertRaisesRegex(ResolutionError, "already declared"):
            Resolver(interpreter).resolve(parser.next_statement())
        self.assertEqual({}, interpreter.locals)

    def test_transient_distances(self):
        interpreter = Interpreter(io.StringIO())
        resolver = Resolver(interpreter)
        block = Parser(Scanner(io.StringIO("{ var a = 1; fun f() { return a; } print a; }"))).next_statement()

        transient = resolver.resolve(block)
        print_a = block.statements[2].expression
        return_a = block.statements[1].body[0].value
        self.assertEqual([print_a], transient)
        self.assertEqual(1, interpreter.locals[return_a])

        interpreter.forget(transient)
        self.assertEqual({return_a: 1}, interpreter.locals)


if __name__ == '__main__':
    unittest.main()
