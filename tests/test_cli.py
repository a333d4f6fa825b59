"""
CLI Test Suite
==============
Tests for the racket-lint command line: file checks, exit codes,
JSON output and the interactive prompt loop.

Usage:
    python -m pytest tests/test_cli.py -v
"""
import sys
import os
import io
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from racket_lint import cli
from racket_lint.config import MIN_TESTS_ENV


CLEAN = """; f : Number -> Number
; adds one
(check-expect (f 1) 2)
(check-expect (f 2) 3)
(define (f x) (+ x 1))
"""

NEEDS_WORK = "; f : Number -> Number\n(check-expect (f 1) 2)\n(define (f x) (+ x 1))\n"


class TestCheckCommand(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, name, content):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def _run(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(list(argv))
        return code, out.getvalue()

    def test_clean_file(self):
        code, out = self._run("check", self._write("clean.rkt", CLEAN))
        self.assertEqual(code, cli.EXIT_CLEAN)
        self.assertEqual(out.strip(), "0 warnings")

    def test_file_with_warnings(self):
        code, out = self._run("check", self._write("hw.rkt", NEEDS_WORK))
        self.assertEqual(code, cli.EXIT_WARNINGS)
        self.assertIn("In function design for f\n  no purpose statement\n  only 1 tests", out)

    def test_min_tests_flag(self):
        code, out = self._run("check", self._write("hw.rkt", NEEDS_WORK), "--min-tests", "1")
        self.assertEqual(code, cli.EXIT_WARNINGS)
        self.assertNotIn("only 1 tests", out)

    def test_min_tests_from_environment(self):
        with mock.patch.dict(os.environ, {MIN_TESTS_ENV: "0"}):
            code, out = self._run("check", self._write("hw.rkt", NEEDS_WORK))
        self.assertIn("no purpose statement", out)
        self.assertNotIn("tests", out)

    def test_bad_environment_value(self):
        with mock.patch.dict(os.environ, {MIN_TESTS_ENV: "lots"}):
            code, out = self._run("check", self._write("hw.rkt", NEEDS_WORK))
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("lots", out)

    def test_bad_min_tests_flag(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.main(["check", "x.rkt", "--min-tests", "-3"])

    def test_json_output(self):
        code, out = self._run("check", self._write("hw.rkt", NEEDS_WORK), "--json")
        self.assertEqual(json.loads(out), [{
            "title": "In function design for f",
            "warnings": ["no purpose statement", "only 1 tests"],
        }])

    def test_missing_file(self):
        code, out = self._run("check", os.path.join(self.tmpdir, "nope.rkt"))
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("File not found", out)

    def test_invalid_utf8_file(self):
        path = os.path.join(self.tmpdir, "latin1.rkt")
        with open(path, "wb") as f:
            f.write(b"; caf\xe9\n")
        code, out = self._run("check", path)
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn(f"Could not read {path}", out)
        self.assertNotIn("File not found", out)

    def test_directory(self):
        code, out = self._run("check", self.tmpdir)
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn(f"Could not read {self.tmpdir}", out)

    def test_lint_file_reports_whether_checked(self):
        config = cli.LintConfig()
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cli.lint_file(self._write("hw.rkt", NEEDS_WORK), config),
                             (True, cli.EXIT_WARNINGS))
            self.assertEqual(cli.lint_file(self._write("bad.rkt", "(f x))"), config),
                             (True, cli.EXIT_ERROR))
            self.assertEqual(cli.lint_file(os.path.join(self.tmpdir, "nope.rkt"), config),
                             (False, cli.EXIT_ERROR))

    def test_syntax_error(self):
        code, out = self._run("check", self._write("bad.rkt", "(define (f x)\n"))
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("Syntax error in file: unmatched parenthesis or bracket", out)

    def test_gracket_file(self):
        path = self._write("img.rkt", "#|\n   This file uses the GRacket editor format.\n|#\n")
        code, out = self._run("check", path)
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("The GRacket editor format is not supported.", out)

    def test_no_command(self):
        code, out = self._run()
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("usage", out.lower())


class TestInteractive(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, "hw.rkt")
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(NEEDS_WORK)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_empty_answer_rechecks_last_file(self):
        out = io.StringIO()
        with mock.patch("builtins.input", side_effect=["", EOFError()]) as fake_input:
            with redirect_stdout(out):
                code = cli.main(["check", "-i", self.path])

        self.assertEqual(code, cli.EXIT_WARNINGS)
        self.assertEqual(out.getvalue().count("In function design for f"), 2)
        fake_input.assert_any_call(f"Input path of file to check [{self.path}]: ")

    def test_prompts_when_no_file_given(self):
        out = io.StringIO()
        with mock.patch("builtins.input", side_effect=["", self.path, KeyboardInterrupt()]) as fake_input:
            with redirect_stdout(out):
                code = cli.main(["check"])

        self.assertEqual(code, cli.EXIT_WARNINGS)
        self.assertEqual(out.getvalue().count("In function design for f"), 1)
        self.assertEqual(fake_input.call_args_list[0], mock.call("Input path of file to check: "))

    def test_missing_file_keeps_last_path(self):
        missing = os.path.join(self.tmpdir, "missing.rkt")
        out = io.StringIO()
        with mock.patch("builtins.input", side_effect=[missing, EOFError()]) as fake_input:
            with redirect_stdout(out):
                cli.main(["check", "-i", self.path])

        self.assertIn("File not found", out.getvalue())
        self.assertEqual(fake_input.call_args_list[1],
                         mock.call(f"Input path of file to check [{self.path}]: "))

    def test_gracket_file_keeps_last_path(self):
        gracket = os.path.join(self.tmpdir, "img.rkt")
        with open(gracket, "w", encoding="utf-8") as f:
            f.write("#|\n   This file uses the GRacket editor format.\n|#\n")
        out = io.StringIO()
        with mock.patch("builtins.input", side_effect=[gracket, "", EOFError()]) as fake_input:
            with redirect_stdout(out):
                cli.main(["check", "-i", self.path])

        self.assertIn("The GRacket editor format is not supported.", out.getvalue())
        self.assertEqual(fake_input.call_args_list[1],
                         mock.call(f"Input path of file to check [{self.path}]: "))
        self.assertEqual(out.getvalue().count("In function design for f"), 2)

    def test_gracket_argument_is_not_remembered(self):
        gracket = os.path.join(self.tmpdir, "img.rkt")
        with open(gracket, "w", encoding="utf-8") as f:
            f.write("#|\n   This file uses the GRacket editor format.\n|#\n")
        with mock.patch("builtins.input", side_effect=[EOFError()]) as fake_input:
            with redirect_stdout(io.StringIO()):
                cli.main(["check", "-i", gracket])

        fake_input.assert_called_once_with("Input path of file to check: ")


if __name__ == "__main__":
    unittest.main()
