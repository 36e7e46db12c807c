import contextlib
import io
import os
import tempfile
import unittest
from unittest import mock

from tinylisp.main import main


class MainTestCase(unittest.TestCase):

    def write_source(self, source):
        """Writes source to a temporary file and returns its path."""
        with tempfile.NamedTemporaryFile("w", suffix=".tl", delete=False) as file:
            file.write(source)
        self.addCleanup(os.remove, file.name)
        return file.name

    def run_main(self, argv):
        """Runs main with argv and returns everything written to stdout."""
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            main(argv)
        return stdout.getvalue()

    def test_file(self):
        path = self.write_source("(defvar x 4)\n(print \"x:\" x)\n(let ((y 2)) (* x y))\n")
        self.assertEqual("x: 4\n8\n", self.run_main([path]))

    def test_empty_file(self):
        path = self.write_source("")
        self.assertEqual("nil\n", self.run_main([path]))

    def test_stdin(self):
        with mock.patch("sys.stdin", io.StringIO("(print 'hello)\n(or nil t)\n")):
            self.assertEqual("hello\nt\n", self.run_main([]))

    def test_ast(self):
        path = self.write_source("(+ 1 2)")
        output = self.run_main(["--ast", path])

        self.assertTrue(output.startswith("List(expr='((+ 1 2))', nodes=["))
        self.assertIn("Symbol(expr='+')", output)
        self.assertIn("Number(expr='2')", output)

    def test_errors_exit(self):
        cases = ["(+ 1 \"a\")", "(+ 1", "undefined", "(defvar x 1) (defvar x 2)"]
        for case in cases:
            path = self.write_source(case)
            with self.assertRaises(SystemExit, msg=case) as context:
                self.run_main([path])
            self.assertEqual(1, context.exception.code, case)

    def test_missing_file(self):
        with self.assertRaises(SystemExit) as context:
            self.run_main(["does/not/exist.tl"])
        self.assertEqual(1, context.exception.code)

    def test_max_depth(self):
        path = self.write_source("(not (not (not (not t))))")
        self.assertEqual("t\n", self.run_main([path]))

        with self.assertRaises(SystemExit):
            self.run_main(["--max-depth", "3", path])


if __name__ == '__main__':
    unittest.main()
