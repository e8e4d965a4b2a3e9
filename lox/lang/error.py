"""Error handling for the lox language. Only LoxErrors should be encountered while running a program: if another type
of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Each pipeline stage has its own error class:
    - LexicalError: raised by the Scanner (unexpected character, invalid number, unterminated string)
    - LoxSyntaxError: raised by the Parser (grammar violation)
    - ResolutionError: raised by the Resolver (duplicate declaration, read in own initializer)
    - LoxRuntimeError: raised by the Interpreter and Environment
"""

import sys

from termcolor import colored


class LoxError(Exception):
    """Base class of every error reported by the lox pipeline. line is None when the origin is not known."""
    kind = "error"

    def __init__(self, message, line=None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} on line {self.line}: {self.message}"


class LexicalError(LoxError):
    kind = "lexical error"


class LoxSyntaxError(LoxError):
    kind = "syntax error"


class ResolutionError(LoxError):
    kind = "resolution error"


class LoxRuntimeError(LoxError):
    kind = "runtime error"


class ErrorHandler:
    """Reports LoxErrors with the source line they came from. Also a context manager that turns stray Python errors
    into internal error reports instead of tracebacks.
    """
    ERROR = "red"
    CONTEXT = "cyan"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream if stream is not None else sys.stderr
        self.path = None
        self.lines = []

    def register_file(self, path, source=""):
        """Registers path and its source text. Errors will quote lines from source."""
        self.path = path
        self.lines = source.splitlines()

    def context(self, error):
        """Returns the 'File ..., line ...' header plus the offending source line, or "" if unknown."""
        if self.path is None or error.line is None:
            return ""

        result = colored(f"  File '{self.path}', line {error.line}:", ErrorHandler.CONTEXT) + "\n"
        if 0 < error.line <= len(self.lines):
            result += f"    {self.lines[error.line - 1].strip()}\n"
        return result

    def throw(self, error, internal=False):
        """Prints error. error must be a LoxError. Unlike the context manager exit, this never exits the process: the
        driver decides what an error means for the rest of the program.
        """
        context = self.context(error)
        error_msg = context

        if internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored(f"{error.kind}: ", ErrorHandler.ERROR, attrs=["bold"])
        if error.line is not None and not context:  # the context header already names the line
            error_msg += f"line {error.line}: "
        error_msg += error.message

        print(error_msg, file=self.stream)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or exc_type is SystemExit:
            return False

        if exc_type is KeyboardInterrupt:
            self.throw(LoxError("keyboard interrupt"))
        elif issubclass(exc_type, RecursionError):
            self.throw(LoxError("maximum recursion depth exceeded"))
        elif issubclass(exc_type, LoxError):
            self.throw(exc_val)
        else:
            self.throw(LoxError(f"unknown error: '{exc_type.__name__}: {exc_val}'"), internal=True)

        if self.fatal:
            sys.exit(1)
        return True
