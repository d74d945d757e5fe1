import io
import unittest
from contextlib import redirect_stdout

from deflang.lang.error import ErrorHandler, GenericException, LexError, ParseError


class GenericExceptionTestCase(unittest.TestCase):

    def test_msg(self):
        error = ParseError("call to non-existent function '{}'", "G()", line=2, col=5)
        self.assertEqual("call to non-existent function 'G()'", error.msg)
        self.assertEqual("call to non-existent function 'G()'", str(error))
        self.assertEqual((2, 5), error.position)
        self.assertEqual(3, error.length)

    def test_many_exprs(self):
        error = GenericException("'{}' takes {} argument(s)", ("F", 2))
        self.assertEqual("'F' takes 2 argument(s)", error.msg)
        self.assertEqual("F", error.expr)
        self.assertIsNone(error.position)

    def test_highlighted_keeps_text(self):
        error = GenericException("unknown parameter '{}'", "z")
        self.assertIn("z", error.highlighted())
        self.assertIn("unknown parameter", error.highlighted())


class ErrorHandlerTestCase(unittest.TestCase):

    def throw(self, handler, error):
        out = io.StringIO()
        with redirect_stdout(out):
            handler.throw(error)
        return out.getvalue()

    def test_throw_with_source(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("prog.def", "DEF F { 1 } ;\nDEF MAIN { G() } ;\n")

        output = self.throw(handler, ParseError("call to non-existent function '{}'", "G()", line=2, col=12))
        self.assertIn("prog.def:2:12", output)
        self.assertIn("call to non-existent function", output)
        self.assertIn("DEF MAIN {", output)
        self.assertIn("^~~", output)

    def test_throw_without_position(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("prog.def", "DEF F { 1 } ;\n")

        output = self.throw(handler, ParseError("no entry function: '{}' is not defined", "MAIN", diagnosis=False))
        self.assertIn("prog.def", output)
        self.assertIn("no entry function", output)
        self.assertNotIn("^", output)

    def test_fatal_exits(self):
        handler = ErrorHandler()
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as context:
                handler.throw(LexError("unexpected character '{}'", "-", line=1, col=1), status=1)
        self.assertEqual(1, context.exception.code)

    def test_context_manager_suppresses(self):
        out = io.StringIO()
        with redirect_stdout(out):
            with ErrorHandler(fatal=False):
                raise ParseError("unknown parameter '{}'", "z")
        self.assertIn("unknown parameter", out.getvalue())

    def test_context_manager_internal(self):
        out = io.StringIO()
        with redirect_stdout(out):
            with self.assertRaises(ValueError):
                with ErrorHandler(fatal=False):
                    raise ValueError("boom")
        self.assertIn("[internal]", out.getvalue())
        self.assertIn("ValueError", out.getvalue())
        self.assertIn("boom", out.getvalue())

    def test_diagnose(self):
        error = ParseError("unknown parameter '{}'", "zz", line=1, col=5)
        diagnosis = ErrorHandler.diagnose(error, "1+x+zz")
        self.assertIn("zz", diagnosis)
        self.assertTrue(diagnosis.splitlines()[-1].startswith("      "))

    def test_register_step(self):
        out = io.StringIO()
        with redirect_stdout(out):
            ErrorHandler(verbose=False).register_step("→", "F(1)")
        self.assertEqual("", out.getvalue())

        with redirect_stdout(out):
            ErrorHandler(verbose=True).register_step("→", "F(1)")
        self.assertIn("F(1)", out.getvalue())


if __name__ == '__main__':
    unittest.main()
