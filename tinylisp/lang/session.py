"""Session control for tinylisp. Feeds source text to a single Machine, either from a file/stdin (batch mode) or line by
line from the shell (command-line mode). Bindings made with defvar persist for the lifetime of the session.
"""

import logging
import sys

from tinylisp.core.lexical import Lexer
from tinylisp.core.machine import Machine
from tinylisp.core.parser import Parser
from tinylisp.lang.error import LispError
from tinylisp.lang.printer import serialize


logger = logging.getLogger(__name__)


class Session:
    """Governs a tinylisp session, with control over the machine that owns its bindings."""
    SH_FILE = "<in>"        # command-line interpreter filename
    STDIN_FILE = "<stdin>"  # piped input filename

    def __init__(self, error_handler, path, cmd_line, output=None, max_depth=None):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.machine = Machine(output=output, max_depth=max_depth)
        self.to_exec = {}  # dict of line num: parsed programs to execute
        self.results = []  # values of executed programs, oldest first

        if self.cmd_line:
            self.error_handler.fatal = False

        if path == Session.STDIN_FILE:
            self.add(sys.stdin.read(), 1)

        elif path != Session.SH_FILE:
            try:
                with open(path, "r") as file:
                    source = file.read()
            except OSError:
                raise LispError("'{}' could not be opened", path, diagnosis=False)
            self.add(source, 1)

        elif not cmd_line:
            raise LispError("'{}' is a reserved filename", Session.SH_FILE, diagnosis=False)

    @staticmethod
    def preprocess_line(line):
        """Preprocesses a line from the command-line. Returns the line and whether or not it leaves parentheses open
        (i.e. needs a continuation line).
        """
        line = line.rstrip()
        return line, Lexer(line).depth() > 0

    def add(self, source, line_num):
        """Parses source and queues it for execution. Evaluation is delayed until run is called."""
        self.error_handler.register_line(self.path, source, line_num)  # in case error is raised

        parser = Parser(source, self.machine.arena)
        program = parser.parse()

        for offset in parser.lexer.unterminated:
            self.error_handler.warn("unterminated string literal", source, start=offset, end=offset + 1)

        if program.nodes:
            self.to_exec[line_num] = (source, program)
            logger.info("queued %d forms from %s:%d", len(program), self.path, line_num)

        self.error_handler.remove_line(self.path)  # error was not raised

    def run(self):
        """Runs this session's queued programs in order. Will raise any errors that are encountered."""
        for line_num, (source, program) in list(self.to_exec.items()):
            self.error_handler.register_line(self.path, source, line_num)

            try:
                self.results.append(self.machine.execute(program))
            finally:
                if self.cmd_line:
                    del self.to_exec[line_num]

            self.error_handler.remove_line(self.path)

    def programs(self):
        """Parsed programs queued in this session, in order."""
        return [program for __, program in self.to_exec.values()]

    def pop(self):
        """Removes and returns the serialized value of the most recent result (nil if nothing has run)."""
        if not self.results:
            return "nil"
        return serialize(self.results.pop())

    def close(self):
        """Releases the session's machine."""
        self.machine.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
