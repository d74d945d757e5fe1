"""Handles interactive/command-line mode for deflang. Uses cmd as backend."""

import cmd

from deflang.lang.error import GenericException
from deflang.lang.session import Evaluated, Session
from deflang.pure.syntax import shape


class Shell(cmd.Cmd):
    """deflang interpreter shell. Every line that is not a command is a definition."""
    intro = "deflang interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "

    def __init__(self, sess, error_handler, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self.error_handler = error_handler
        self.error_handler.fatal = False  # a bad line must not end the shell

        self.lines = []  # definitions accepted so far, each ending with a newline

    @property
    def text(self):
        return "".join(self.lines)

    def default(self, line):
        """Syntax-checks line on its own and, if it parses, appends it to the program."""
        line = line.rstrip("\r\n") + "\n"
        self.error_handler.register_source(Session.SH_FILE, line)

        with self.error_handler:
            self.sess.parse(line, validate=False)
            self.lines.append(line)

    def do_run(self, arg):
        """Validates the definitions entered so far and evaluates MAIN."""
        self.error_handler.register_source(Session.SH_FILE, self.text)

        outcome = self.sess.run(self.text)
        if isinstance(outcome, Evaluated):
            print(outcome.value)
        else:
            self.error_handler.throw(outcome.error, outcome.status)

    def do_list(self, arg):
        """Lists the definitions entered so far as NAME(params):=body."""
        with self.error_handler:
            program = self.sess.parse(self.text, validate=False)
            for definition in program.functions.values():
                print(definition.render())

    def do_tree(self, arg):
        """Shows the syntax tree of the body of the named function."""
        with self.error_handler:
            program = self.sess.parse(self.text, validate=False)
            if arg not in program:
                raise GenericException("'{}' is not defined", arg, diagnosis=False)
            print(shape(program[arg].body))

    def do_reset(self, arg):
        """Forgets every definition."""
        self.lines = []

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the deflang interpreter!\n\n"
              "Type one definition per line, e.g. 'DEF SQ x { x*x } ;' and then \n"
              "'DEF MAIN { SQ(3)+1 } ;'. 'run' evaluates MAIN, 'list' shows what has \n"
              "been defined, 'tree NAME' shows a function's syntax tree and 'reset' \n"
              "starts over.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
