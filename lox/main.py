"""Runs .lox files, or starts the interactive shell when no file is given. Called from the lox executable script.

Exit codes in file mode:
    0   success
    1   file could not be opened (or an internal error)
    64  bad command-line usage
    65  lexical, syntax or resolution error
    70  runtime error
"""

import argparse
import sys

from lox.lang.error import ErrorHandler
from lox.lang.session import Session, Status
from lox.lang.shell import Shell


EXIT_CODES = {
    Status.OK: 0,
    Status.DONE: 0,
    Status.GRAMMAR_ERROR: 65,
    Status.RUNTIME_ERROR: 70,
}


class ArgumentParser(argparse.ArgumentParser):
    """Exits with 64 (usage error) instead of argparse's default of 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(64, f"{self.prog}: error: {message}\n")


def main():
    """Runs lox interpreter. Called from lox executable script."""
    assert sys.version_info >= (3, 7), "lox cannot be run with python < 3.7"

    with ErrorHandler() as error_handler:
        parser = ArgumentParser(prog="lox")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")

        mode = parser.add_mutually_exclusive_group()
        mode.add_argument("--format", action="store_true", help="print the file reformatted instead of running it")
        mode.add_argument("--tokens", action="store_true", help="print the file's tokens instead of running it")
        args = parser.parse_args()

        if args.file is None:
            if args.format or args.tokens:
                parser.error("--format and --tokens need a file")
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()
            return

        sess = Session(error_handler, args.file, cmd_line=False)
        if args.format:
            status = sess.format_file()
        elif args.tokens:
            status = sess.tokenize_file()
        else:
            status = sess.run_file()

        sys.exit(EXIT_CODES[status])


if __name__ == "__main__":
    main()
