import os
import tempfile
import unittest

from deflang.lang.error import DivergenceError, EvalError, GenericException, LexError, ParseError
from deflang.lang.session import Diverged, EvalFailed, Evaluated, ParseFailed, Session
from deflang.pure.program import ParserConfig


def program(*lines):
    return "".join(line + "\n" for line in lines)


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.sess = Session()

    def test_evaluated(self):
        outcome = self.sess.run(program("DEF MAIN { 2+3*4 } ;"))
        self.assertEqual(Evaluated(14), outcome)
        self.assertTrue(outcome.ok)
        self.assertEqual(0, outcome.status)

    def test_parse_failed(self):
        cases = {
            program("DEF F { 1 } ;"): ParseError,
            program("DEF MAIN { G() } ;"): ParseError,
            "DEF MAIN { 1 } ;": LexError,
            program("DEF MAIN { 1-1 } ;"): LexError,
        }
        for case, error in cases.items():
            outcome = self.sess.run(case)
            self.assertIsInstance(outcome, ParseFailed, case)
            self.assertIsInstance(outcome.error, error, case)
            self.assertFalse(outcome.ok)
            self.assertEqual(1, outcome.status)

    def test_no_entry_diagnostic(self):
        outcome = self.sess.run(program("DEF F { 1 } ;"))
        self.assertIn("no entry function", outcome.diagnostic)

    def test_diverged(self):
        outcome = self.sess.run(program("DEF MAIN { LOOP() } ;", "DEF LOOP { LOOP() } ;"))
        self.assertIsInstance(outcome, Diverged)
        self.assertIsInstance(outcome.error, DivergenceError)
        self.assertIn("LOOP()", outcome.diagnostic)
        self.assertEqual(2, outcome.status)

    def test_not_diverged(self):
        outcome = self.sess.run(program("DEF F x { x } ;", "DEF MAIN { F(1)+F(1) } ;"))
        self.assertEqual(Evaluated(2), outcome)

    def test_parse_then_evaluate(self):
        prog = self.sess.parse(program("DEF MAIN { 7 } ;"))
        self.assertEqual(7, self.sess.evaluate(prog))
        self.assertRaises(EvalError, prog.main.invoke, [1], None)

    def test_eval_failed_outcome(self):
        class BrokenSession(Session):
            def evaluate(self, program):
                raise EvalError("unbound parameter '{}'", "x")

        outcome = BrokenSession().run(program("DEF MAIN { 1 } ;"))
        self.assertIsInstance(outcome, EvalFailed)
        self.assertEqual(3, outcome.status)
        self.assertEqual("unbound parameter 'x'", outcome.diagnostic)

    def test_deep_chain_recursion_limit(self):
        def name(i):
            return "F" + chr(65 + i // 26) + chr(65 + i % 26)

        lines = [f"DEF {name(i)} {{ {name(i + 1)}() }} ;" for i in range(600)]
        lines.append(f"DEF {name(600)} {{ 1 }} ;")
        lines.append("DEF MAIN { FAA() } ;")

        outcome = self.sess.run(program(*lines))
        self.assertIsInstance(outcome, EvalFailed)
        self.assertIn("maximum recursion depth", outcome.diagnostic)
        self.assertEqual(3, outcome.status)

    def test_deeply_nested_calls(self):
        text = program("DEF F x { x } ;", "DEF MAIN { " + "F(" * 400 + "1" + ")" * 400 + " } ;")
        outcome = self.sess.run(text)
        self.assertIsInstance(outcome, ParseFailed)
        self.assertIn("nested too deeply", outcome.diagnostic)
        self.assertEqual(1, outcome.status)

        text = program("DEF F x { x } ;", "DEF MAIN { " + "F(" * 20 + "1" + ")" * 20 + " } ;")
        self.assertEqual(Evaluated(1), self.sess.run(text))

    def test_long_sum(self):
        outcome = self.sess.run(program("DEF MAIN { " + "+".join(["1"] * 3000) + " } ;"))
        self.assertEqual(Evaluated(3000), outcome)

    def test_run_parsed_program(self):
        prog = self.sess.parse(program("DEF F x { x*2 } ;", "DEF MAIN { F(21) } ;"), validate=False)
        self.assertEqual(Evaluated(42), self.sess.run_program(prog))

        prog = self.sess.parse(program("DEF F { G() } ;"), validate=False)
        outcome = self.sess.run_program(prog)
        self.assertIsInstance(outcome, ParseFailed)
        self.assertIn("no entry function", outcome.diagnostic)

    def test_config(self):
        text = program("DEF F a b { a*b } ;", "DEF MAIN { F(6 7) } ;")
        self.assertIsInstance(self.sess.run(text), ParseFailed)
        self.assertEqual(Evaluated(42), Session(ParserConfig(max_arguments=2)).run(text))

    def test_steps(self):
        steps = []
        sess = Session(on_step=lambda *step: steps.append(step))
        sess.run(program("DEF F x { x } ;", "DEF MAIN { F(1) } ;"))
        self.assertEqual([("→", "F(1)"), ("←", "F = 1")], steps)

    def test_load(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "prog.def")
            with open(path, "w", newline="") as file:
                file.write("DEF MAIN { 6*7 } ;\r\n")

            text = Session.load(path)
            self.assertEqual("DEF MAIN { 6*7 } ;\r\n", text)
            self.assertEqual(Evaluated(42), self.sess.run(text))

            with self.assertRaises(GenericException) as context:
                Session.load(os.path.join(directory, "missing.def"))
            self.assertIn("could not be opened", context.exception.msg)


if __name__ == '__main__':
    unittest.main()
