"""Session control for the lox language. A Session owns one Interpreter (and its Resolver) and drives the pipeline,
either over a whole file or over the lines typed into the shell.

Every iteration of the driver loop (request a statement, resolve it, interpret it) returns a Status instead of
setting error flags, and the caller decides what that status means:
    - script mode stops executing after the first grammar error but keeps parsing, so every broken statement is
      reported; a runtime error stops the script
    - command-line mode reports errors and carries on with the next statement
"""

import io
import sys
from enum import Enum, auto

from lox.core.interpreter import Interpreter, stringify
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.core.scanner import Scanner
from lox.core.tokens import TokenType
from lox.core.tree import EndMarker, ExpressionStmt
from lox.lang.error import LexicalError, LoxError, LoxRuntimeError, LoxSyntaxError, ResolutionError
from lox.lang.format import Formatter


class Status(Enum):
    """Outcome of one driver iteration (or of a whole run, for the worst iteration)."""
    OK = auto()
    GRAMMAR_ERROR = auto()  # lexical, syntax or resolution error
    RUNTIME_ERROR = auto()
    DONE = auto()           # end of input was reached


class Session:
    """Governs a lox session: one global environment shared by everything run in it."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line, output=None):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode
        self.output = output if output is not None else sys.stdout

        self.interpreter = Interpreter(self.output)
        self.resolver = Resolver(self.interpreter)
        self.results = []  # values of expression statements, only kept in command-line mode

        if self.cmd_line:
            self.error_handler.fatal = False
        elif path == Session.SH_FILE:
            raise LoxError("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line):
        """Returns line and whether it needs a continuation line, i.e. whether it leaves a brace or parenthesis open.
        Braces inside strings and comments do not count.
        """
        balance = 0
        in_string = False
        idx = 0
        while idx < len(line):
            char = line[idx]
            if in_string:
                in_string = char != "\""
            elif char == "\"":
                in_string = True
            elif line.startswith("//", idx):
                idx = line.find("\n", idx)
                if idx == -1:
                    break
            elif char in "({":
                balance += 1
            elif char in ")}":
                balance -= 1
            idx += 1

        return line, balance > 0 or in_string

    def read(self):
        """Returns the source text of self.path."""
        try:
            with open(self.path, "r") as file:
                return file.read()
        except OSError:
            raise LoxError(f"'{self.path}' could not be opened")

    def step(self, parser, execute=True):
        """Runs one driver iteration: requests the next statement from parser, resolves it and, if execute, interprets
        it. Errors are reported through the error handler and turned into the returned Status.
        """
        try:
            stmt = parser.next_statement()
            transient = self.resolver.resolve(stmt)
        except (LexicalError, LoxSyntaxError, ResolutionError) as error:
            self.error_handler.throw(error)
            return Status.GRAMMAR_ERROR

        if not execute:
            self.interpreter.forget(transient)
            return Status.DONE if isinstance(stmt, EndMarker) else Status.OK

        try:
            value = self.interpreter.interpret(stmt)
        except LoxRuntimeError as error:
            self.error_handler.throw(error)
            return Status.RUNTIME_ERROR
        finally:
            self.interpreter.forget(transient)  # only function bodies run again

        if self.interpreter.is_done():
            return Status.DONE

        if self.cmd_line and isinstance(stmt, ExpressionStmt):
            self.results.append(value)
        return Status.OK

    def run(self, reader):
        """Runs every statement readable from reader (a text stream). Returns the worst Status seen, DONE excepted."""
        parser = Parser(Scanner(reader))
        status = Status.OK

        while True:
            result = self.step(parser, execute=self.cmd_line or status is Status.OK)

            if result is Status.DONE:
                break
            elif result is Status.RUNTIME_ERROR and not self.cmd_line:
                return result
            elif result is not Status.OK:
                status = result

        if self.cmd_line:
            self.interpreter.done = False  # end of this input, not of the session
        return status

    def add(self, source):
        """Runs source text (a file's content or a line from the shell) in this session."""
        self.error_handler.register_file(self.path, source)
        return self.run(io.StringIO(source))

    def run_file(self):
        return self.add(self.read())

    def format_file(self):
        """Prints self.path reformatted, one statement per line. Nothing is executed."""
        source = self.read()
        self.error_handler.register_file(self.path, source)

        parser = Parser(Scanner(io.StringIO(source)))
        formatter = Formatter()
        status = Status.OK

        while True:
            try:
                stmt = parser.next_statement()
            except (LexicalError, LoxSyntaxError) as error:
                self.error_handler.throw(error)
                status = Status.GRAMMAR_ERROR
                continue

            if isinstance(stmt, EndMarker):
                return status
            print(formatter.format(stmt), file=self.output)

    def tokenize_file(self):
        """Prints every token of self.path, one per line."""
        source = self.read()
        self.error_handler.register_file(self.path, source)

        scanner = Scanner(io.StringIO(source))
        status = Status.OK

        while True:
            try:
                token = scanner.next_token()
            except LexicalError as error:
                self.error_handler.throw(error)
                status = Status.GRAMMAR_ERROR
                continue

            print(f"{token.line}: {token}", file=self.output)
            if token.kind is TokenType.EOF:
                return status

    def pop(self):
        """Removes and returns the textual form of the oldest pending result."""
        return stringify(self.results.pop(0))
