import io
import math
import unittest

from lox.core.interpreter import Interpreter, is_equal, is_truthy, stringify
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.core.scanner import Scanner
from lox.core.tree import EndMarker, ExpressionStmt
from lox.lang.error import LoxRuntimeError


def run(src, interpreter=None):
    """Runs src through the whole pipeline. Returns (value of the last expression statement, printed output)."""
    if interpreter is None:
        interpreter = Interpreter(io.StringIO())
    resolver = Resolver(interpreter)
    parser = Parser(Scanner(io.StringIO(src)))

    result = None
    while True:
        stmt = parser.next_statement()
        resolver.resolve(stmt)
        value = interpreter.interpret(stmt)
        if isinstance(stmt, EndMarker):
            return result, interpreter.output.getvalue()
        if isinstance(stmt, ExpressionStmt):
            result = value


def evaluate(src):
    return run(src)[0]


def output(src):
    return run(src)[1]


class ValuesTestCase(unittest.TestCase):

    def test_truthiness(self):
        # pairs rather than a dict: False and 0.0 would collide as keys
        cases = [
            (None, False),
            (False, False),
            (True, True),
            (0.0, True),
            ("", True),
        ]
        for case, expected in cases:
            self.assertEqual(expected, is_truthy(case), case)

    def test_equality(self):
        self.assertTrue(is_equal(None, None))
        self.assertFalse(is_equal(None, 0.0))
        self.assertFalse(is_equal(1.0, True))
        self.assertFalse(is_equal(0.0, False))
        self.assertFalse(is_equal("1", 1.0))
        self.assertTrue(is_equal("a", "a"))
        self.assertFalse(is_equal(math.nan, math.nan))

    def test_stringify(self):
        cases = [
            (None, "nil"),
            (True, "true"),
            (False, "false"),
            (1.0, "1"),
            (-3.0, "-3"),
            (1.5, "1.5"),
            ("text", "text"),
        ]
        for case, expected in cases:
            self.assertEqual(expected, stringify(case), case)


class InterpreterTestCase(unittest.TestCase):

    def test_expressions(self):
        cases = {
            "1;": 1.0,
            "\"str\";": "str",
            "nil;": None,
            "true;": True,
            "1 + 2;": 3.0,
            "1 + 2 * 3;": 7.0,
            "(1 + 2) * 3;": 9.0,
            "7 - 2 - 1;": 4.0,
            "8 / 4 / 2;": 1.0,
            "1 / 4;": 0.25,
            "-(1 + 1);": -2.0,
            "\"str\" + \"ing\";": "string",
            "1 < 2;": True,
            "2 <= 2;": True,
            "1 > 2;": False,
            "2 >= 3;": False,
            "1 == 1;": True,
            "1 != 1;": False,
            "nil == nil;": True,
            "nil == false;": False,
            "1 == true;": False,
            "\"1\" == 1;": False,
            "!nil;": True,
            "!0;": False,
            "!\"\";": False,
            "nil or \"x\";": "x",
            "1 or 2;": 1.0,
            "1 and 2;": 2.0,
            "nil and 2;": None,
            "false or false;": False,
        }
        for case, expected in cases.items():
            self.assertEqual(expected, evaluate(case), case)

    def test_division_by_zero(self):
        self.assertEqual(math.inf, evaluate("1 / 0;"))
        self.assertEqual(-math.inf, evaluate("-1 / 0;"))
        self.assertTrue(math.isnan(evaluate("0 / 0;")))

    def test_runtime_errors(self):
        should_fail = {
            "1 + nil;": "right operand must be a number",
            "\"a\" + 1;": "right operand must be a string",
            "nil + 1;": "left operand must be a number or a string",
            "true + true;": "left operand must be a number or a string",
            "\"a\" - 1;": "left operand must be a number",
            "1 * \"a\";": "right operand must be a number",
            "\"a\" < \"b\";": "left operand must be a number",
            "-\"a\";": "operand must be a number",
            "-nil;": "operand must be a number",
            "assert false;": "assertion failed",
            "assert nil;": "assertion failed",
            "undefined;": "variable not defined: 'undefined'",
            "undefined = 1;": "variable not declared: 'undefined'",
            "var x = 1; var x = 2;": "variable already declared: 'x'",
            "1();": "can only call functions",
            "nil();": "can only call functions",
            "\"f\"();": "can only call functions",
            "fun f(a) {} f();": "expected 1 arguments but got 0",
            "fun f() {} f(1, 2);": "expected 0 arguments but got 2",
            "clock(1);": "expected 0 arguments but got 1",
            "return 1;": "cannot return from top-level code",
            "{ return; }": "cannot return from top-level code",
        }
        for case, expected in should_fail.items():
            with self.assertRaisesRegex(LoxRuntimeError, expected, msg=case):
                run(case)

    def test_error_line(self):
        with self.assertRaises(LoxRuntimeError) as context:
            run("var x = 1;\n\nx = x + nil;")
        self.assertEqual(3, context.exception.line)

    def test_print(self):
        src = "print 1; print 1.5; print \"s\"; print nil; print true; fun f() {} print f; print clock;"
        self.assertEqual("1\n1.5\ns\nnil\ntrue\n<fn f>\n<native fn>\n", output(src))

    def test_assert(self):
        self.assertEqual("", output("assert true; assert 0; assert \"\"; assert 1 == 1;"))

    def test_variables(self):
        self.assertEqual(3.0, evaluate("var x = 1; x = x + 2; x;"))
        self.assertIsNone(evaluate("var x; x;"))
        self.assertEqual(2.0, evaluate("var a; var b; a = b = 2; a;"))

    def test_shadowing(self):
        src = "var x = 1;\n{\n\tvar x = 2;\n\tassert x == 2;\n\t{ x = 3; }\n\tassert x == 3;\n}\nx;"
        self.assertEqual(1.0, evaluate(src))

    def test_control_flow(self):
        cases = {
            "var r; if (true) r = 1; else r = 2; r;": 1.0,
            "var r; if (nil) r = 1; else r = 2; r;": 2.0,
            "var r = 0; if (0) r = 1; r;": 1.0,
            "var i = 0; while (i < 5) i = i + 1; i;": 5.0,
            "var i = 0; while (false) i = 1; i;": 0.0,
        }
        for case, expected in cases.items():
            self.assertEqual(expected, evaluate(case), case)

    def test_short_circuit(self):
        src = """
        var called = false;
        fun f() { called = true; return true; }
        false and f();
        true or f();
        called;
        """
        self.assertFalse(evaluate(src))

    def test_functions(self):
        cases = {
            "fun f() {} f();": None,
            "fun f() { return; } f();": None,
            "fun add(a, b) { return a + b; } add(1, 2);": 3.0,
            "fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); } fib(10);": 55.0,
            "fun f() { var i = 0; while (true) { { i = i + 1; if (i == 3) return i; } } } f();": 3.0,
            "fun f(a) { a = a + 1; return a; } var x = 1; f(x); x;": 1.0,
            "fun f() {} var g = f; g == f;": True,
            "fun f() {} fun g() {} f == g;": False,
            "clock() > 0;": True,
        }
        for case, expected in cases.items():
            self.assertEqual(expected, evaluate(case), case)

    def test_closures(self):
        src = """
        fun makeCounter() {
            var i = 0;
            fun count() {
                i = i + 1;
                return i;
            }
            return count;
        }
        var a = makeCounter();
        var b = makeCounter();
        a();
        a();
        print a();
        print b();
        """
        self.assertEqual("3\n1\n", output(src))

    def test_closure_binding_is_static(self):
        src = """
        var a = "global";
        {
            fun showA() { print a; }
            showA();
            var a = "block";
            showA();
        }
        """
        self.assertEqual("global\nglobal\n", output(src))

    def test_environment_restored_after_error(self):
        interpreter = Interpreter(io.StringIO())
        with self.assertRaisesRegex(LoxRuntimeError, "assertion failed"):
            run("{ var inner = 1; assert false; }", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)

        with self.assertRaisesRegex(LoxRuntimeError, "right operand"):
            run("fun f() { { return 1 + nil; } } f();", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)

        with self.assertRaisesRegex(LoxRuntimeError, "variable not defined: 'inner'"):
            run("inner;", interpreter)

    def test_deep_recursion(self):
        interpreter = Interpreter(io.StringIO())
        with self.assertRaisesRegex(LoxRuntimeError, "maximum recursion depth exceeded"):
            run("fun f() { return f(); } f();", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)

    def test_done(self):
        interpreter = Interpreter(io.StringIO())
        self.assertFalse(interpreter.is_done())
        run("1;", interpreter)
        self.assertTrue(interpreter.is_done())


if __name__ == '__main__':
    unittest.main()
