"""Runs deflang programs from files, or starts the interactive shell. Installed as the deflang executable.

Exit status: 0 if MAIN was evaluated, 1 if the program failed to parse, 2 if it diverges, 3 if evaluation failed.
"""

import argparse
import sys

from deflang.lang.error import ErrorHandler, GenericException
from deflang.lang.session import Evaluated, Session
from deflang.lang.shell import Shell
from deflang.pure.program import ParserConfig


def build_parser():
    parser = argparse.ArgumentParser(prog="deflang")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--max-args", type=int, default=ParserConfig.max_arguments, metavar="N",
                        help="most arguments a single call may pass (default: %(default)s)")
    parser.add_argument("--show", action="store_true", help="print every parsed definition before evaluating")
    parser.add_argument("--trace", action="store_true", help="print every call and return while evaluating")
    return parser


def main(argv=None):
    """Runs deflang interpreter. Called from deflang executable script."""
    args = build_parser().parse_args(argv)

    with ErrorHandler(verbose=args.trace) as error_handler:
        sess = Session(ParserConfig(max_arguments=args.max_args), on_step=error_handler.register_step)

        if args.file is None:
            Shell(sess, error_handler).cmdloop()
            return 0

        text = Session.load(args.file)
        error_handler.register_source(args.file, text)

        program = sess.parse(text, validate=False)
        for definition in program.redefined:
            msg = "'{}' is defined more than once, only the last definition is used"
            error_handler.warn(GenericException(msg, definition.name, line=definition.line, col=len("DEF ") + 1))

        if args.show:
            for definition in program.functions.values():
                print(definition.render())

        outcome = sess.run_program(program)
        if isinstance(outcome, Evaluated):
            print(outcome.value)
        else:
            error_handler.throw(outcome.error, outcome.status)
        return outcome.status


if __name__ == "__main__":
    sys.exit(main())
