"""Handles interactive/command-line mode for the lox interpreter. Uses cmd as backend."""

import cmd

from lox.lang.session import Session


class Shell(cmd.Cmd):
    """lox interpreter shell."""
    intro = "lox interpreter :: Python backend\nType 'help' for more information, 'exit' to leave."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sess = sess
        self._tmp_line = ""

    def parseline(self, line):
        """Everything is lox source, except the shell's own commands typed at the start of a statement. cmd.Cmd would
        otherwise read a leading '!' or '?' as a command.
        """
        if self._tmp_line or line.lstrip().startswith(("!", "?")):
            return None, None, line
        return super().parseline(line)

    def default(self, line):
        """Executes arbitrary lox source."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            line, add_to_prev = Session.preprocess_line(self._tmp_line + line)

            if add_to_prev:
                self._tmp_line = line + "\n"
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.add(line)
            while self.sess.results:
                print(self.sess.pop(), file=self.stdout)

    def do_help(self, arg):
        """Prints a short tour of the language instead of per-command docs."""
        print("Welcome to the lox interpreter!\n\n"
              "Type statements to run them: 'var x = 1;', 'print x + 2;'. The value of an expression \n"
              "statement such as 'x * 3;' is echoed back. Blocks and functions can span several \n"
              "lines: the prompt changes to '. ' until every brace is closed.\n\n"
              "Variables and functions stay defined until you leave with 'exit' or Ctrl-D.", file=self.stdout)

    def emptyline(self):
        """An empty line runs nothing (cmd.Cmd would repeat the last one)."""
        return ""

    def do_EOF(self, arg):
        """Leaves the shell on Ctrl-D."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
