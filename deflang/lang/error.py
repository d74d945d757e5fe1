"""Error handling for deflang. Only GenericExceptions should be encountered during running: if another type of error
is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Taxonomy:

```
GenericException
 ├── LexError         ; no token rule matches at a position
 ├── ParseError       ; bad syntax, unknown parameter, bad call site, missing MAIN
 └── EvalError        ; wrong argument count, unbound parameter
      └── DivergenceError  ; a call site re-entered itself: the program never terminates
```
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be used to throw a deflang error. msg is a format string whose
    placeholders are filled with exprs (exprs[0] should be the offending snippet). line and col locate the snippet in
    the source text, when it has one.
    """

    def __init__(self, msg, exprs=None, line=None, col=None, length=None, diagnosis=True, internal=False):
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]

        self.template = msg
        self.exprs = [str(expr) for expr in exprs]
        self.msg = msg.format(*self.exprs)
        self.expr = self.exprs[0]
        self.length = length if length is not None else max(len(self.expr), 1)

        self.line = line
        self.col = col
        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.msg)

    @property
    def position(self):
        """(line, col) of the offending snippet, or None if the error is not tied to the source."""
        if self.line is None or self.col is None:
            return None
        return self.line, self.col

    def highlighted(self):
        """Returns self.msg with the offending snippets bolded."""
        return self.template.format(*(colored(expr, attrs=["bold"]) for expr in self.exprs))


class LexError(GenericException):
    """Raised when no token rule matches the input at some position."""


class ParseError(GenericException):
    """Raised for any malformed definition or expression, and by whole-program validation."""


class EvalError(GenericException):
    """Raised when evaluation of a (validated) program fails."""


class DivergenceError(EvalError):
    """A call site was entered again while it was still being evaluated. Since deflang has no conditionals, that call
    can never return.
    """


class ErrorHandler:
    """Context manager that will silently suppress Python errors and print custom deflang errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"
    STEP = "cyan"

    def __init__(self, fatal=True, verbose=False):
        self.fatal = fatal
        self.verbose = verbose  # whether register_step prints anything
        self.path = None
        self.lines = []

    def register_source(self, path, text):
        """Registers the source text errors will be diagnosed against."""
        self.path = path
        self.lines = text.splitlines()

    def register_step(self, symbol, expr):
        """Prints a single evaluation step if verbose."""
        if self.verbose:
            print(colored(f"  {symbol} ", ErrorHandler.STEP, attrs=["bold"]) + colored(str(expr), attrs=["dark"]))

    def source_line(self, error):
        """Returns the source line error points into, or None."""
        if error.position is None or not 0 < error.line <= len(self.lines):
            return None
        return self.lines[error.line - 1]

    @staticmethod
    def diagnose(error, line, warning=False):
        """Returns offending part of line highlighted and bolded, with a caret underneath."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        start = max(error.col - 1, 0)
        end = min(start + error.length, max(len(line), start + 1))

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def _header(self, error):
        location = self.path if self.path else ""
        if error.position is not None:
            location += f":{error.line}:{error.col}" if location else f"{error.line}:{error.col}"
        return colored(f"{location}: ", attrs=["bold"]) if location else ""

    def warn(self, error):
        """Prints a warning for error (a GenericException) without raising or exiting."""
        print(self._header(error) + colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.highlighted())

        line = self.source_line(error)
        if not error.internal and error.diagnosis and line is not None:
            print(ErrorHandler.diagnose(error, line, warning=True))

    def throw(self, error, status=1):
        """Prints error, a GenericException, and exits with status if self.fatal."""
        error_msg = self._header(error)

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.highlighted()
        print(error_msg)

        line = self.source_line(error)
        if not error.internal and error.diagnosis and line is not None:
            print(ErrorHandler.diagnose(error, line))

        if self.fatal:
            sys.exit(status)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", (exc_type.__name__, exc_val), internal=True))
            do_exit = True

        return not do_exit
