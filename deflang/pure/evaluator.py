"""Evaluation of validated deflang programs.

deflang has no conditionals, so a call that is entered again while it is still on the stack can never return. The
recursion guard therefore keys on the call site itself (the Call node), not on the function it names: F(1)+F(1)
calls F twice from two sites and is fine, while LOOP() inside LOOP's own body is reported as soon as it is re-entered.
"""

from deflang.lang.error import DivergenceError, EvalError
from deflang.pure.syntax import Call, Number, Parameter, Product, Sum, operands, render


class EvaluationContext:
    """One evaluation run of program. Owns the live call stack; program itself is only read, so several contexts
    may share it.
    """

    def __init__(self, program, on_step=None):
        self.program = program
        self.on_step = on_step  # called with (symbol, text) on every call entry and return
        self.stack = []         # Call nodes currently being evaluated, outermost first

    def run(self):
        """Invokes the entry function with no arguments and returns its value."""
        return self.program.main.invoke([], self)

    def evaluate(self, node, binding):
        """Returns the integer value of node with parameters looked up in binding."""
        if isinstance(node, Number):
            return node.value

        elif isinstance(node, Parameter):
            try:
                return binding[node.name]
            except KeyError:
                raise EvalError("unbound parameter '{}'", node.name, line=node.line, col=node.col) from None

        elif isinstance(node, (Sum, Product)):
            first, *rest = operands(node)
            value = self.evaluate(first, binding)
            for operand in rest:
                right = self.evaluate(operand, binding)
                value = value + right if isinstance(node, Sum) else value * right
            return value

        elif isinstance(node, Call):
            return self.call(node, binding)

        raise TypeError(f"not a deflang expression: {node!r}")

    def call(self, node, binding):
        """Evaluates a Call node, raising DivergenceError if node is already being evaluated."""
        if node in self.stack:
            msg = "'{}' calls itself again before returning: the program never terminates"
            raise DivergenceError(msg, render(node), line=node.line, col=node.col, length=len(node.name))

        self.stack.append(node)
        try:
            arguments = [self.evaluate(argument, binding) for argument in node.arguments]

            try:
                callee = self.program[node.name]
            except KeyError:
                raise EvalError("call to non-existent function '{}'", render(node), line=node.line,
                                col=node.col) from None

            self._step("→", render(node) if not arguments else f"{node.name}({' '.join(map(str, arguments))})")
            value = callee.invoke(arguments, self)
            self._step("←", f"{node.name} = {value}")

            return value
        finally:
            self.stack.pop()

    def _step(self, symbol, text):
        if self.on_step is not None:
            self.on_step(symbol, text)


def evaluate(program, on_step=None):
    """Evaluates program's entry function in a fresh EvaluationContext."""
    return EvaluationContext(program, on_step).run()
