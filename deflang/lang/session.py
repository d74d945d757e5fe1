"""Session control for deflang: parse a program, validate it, evaluate MAIN, and classify what happened.

Session.run never raises for problems with the program itself. It returns exactly one Outcome:

```
Evaluated(value)   ; parsed, validated, and MAIN evaluated to value
ParseFailed(error) ; LexError or ParseError, evaluation never attempted
Diverged(error)    ; DivergenceError: the program does not terminate
EvalFailed(error)  ; any other EvalError
```
"""

from dataclasses import dataclass

from deflang.lang.error import DivergenceError, EvalError, GenericException, LexError, ParseError
from deflang.pure.evaluator import EvaluationContext
from deflang.pure.program import ParserConfig, ProgramParser


class Outcome:
    """Superclass of the four results of Session.run."""
    status = 0  # process exit status the CLI uses for this outcome
    ok = False


@dataclass(frozen=True)
class Evaluated(Outcome):
    value: int
    ok = True


@dataclass(frozen=True)
class Failed(Outcome):
    error: GenericException

    @property
    def diagnostic(self):
        return self.error.msg


@dataclass(frozen=True)
class ParseFailed(Failed):
    status = 1


@dataclass(frozen=True)
class Diverged(Failed):
    status = 2


@dataclass(frozen=True)
class EvalFailed(Failed):
    status = 3


class Session:
    """Governs a deflang session: parser configuration and, optionally, a callback for tracing evaluation steps."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, config=None, on_step=None):
        self.config = config if config is not None else ParserConfig()
        self.on_step = on_step

    @staticmethod
    def load(path):
        """Returns the text of the program at path."""
        try:
            with open(path, "r", encoding="utf-8", newline="") as file:
                return file.read()
        except OSError:
            raise GenericException("'{}' could not be opened", path, diagnosis=False) from None

    def parse(self, text, validate=True):
        """Returns the Program in text. Raises LexError or ParseError."""
        try:
            return ProgramParser(text, self.config).parse(validate)
        except RecursionError:
            raise ParseError("program nested too deeply", diagnosis=False) from None

    def evaluate(self, program):
        """Returns the value of program's entry function. Raises EvalError or DivergenceError."""
        return EvaluationContext(program, self.on_step).run()

    def run(self, text):
        """Parses, validates, and evaluates text, returning its Outcome."""
        try:
            program = self.parse(text, validate=False)
        except (LexError, ParseError) as error:
            return ParseFailed(error)

        return self.run_program(program)

    def run_program(self, program):
        """Validates and evaluates an already parsed program, returning its Outcome."""
        try:
            program.validate()
        except ParseError as error:
            return ParseFailed(error)
        except RecursionError:
            return ParseFailed(ParseError("program nested too deeply", diagnosis=False))

        try:
            return Evaluated(self.evaluate(program))
        except DivergenceError as error:
            return Diverged(error)
        except EvalError as error:
            return EvalFailed(error)
        except RecursionError:
            return EvalFailed(EvalError("maximum recursion depth exceeded", diagnosis=False))
