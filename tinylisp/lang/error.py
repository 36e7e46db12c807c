"""Error handling for tinylisp. Only LispErrors should be encountered during running: if another type of error is raised
and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Parse errors carry the offending token and its offset in the source, so they can be diagnosed with a caret. Evaluation
errors carry no location (the syntax tree does not keep one) and propagate through the evaluator unchanged.
"""

import sys

from termcolor import colored


class LispError(Exception):
    """Templates an error/warning message so that it can be used to throw a tinylisp error/warning. exprs fill the '{}'
    slots of msg and are bolded in the rendered message.
    """

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        """Parses args for LispError or warning."""
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]
        exprs = [str(expr) for expr in exprs]

        super().__init__(msg.format(*exprs))
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending expr that caused the error
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.diagnosis = diagnosis
        self.internal = internal


class ParseError(LispError):
    """Raised when source text is not a well-formed program. No partial tree is ever returned alongside it."""

    def __init__(self, msg, token, source=""):
        snippet = token.text or source[token.start:token.start + 1]
        super().__init__(msg, snippet or token.kind.value)

        self.token = token
        self.position = token.start

        # diagnose against the whole source, not just the snippet
        self.expr = source
        self.start = token.start
        self.end = token.start + max(len(snippet), 1)
        self.diagnosis = bool(source)


class EvalError(LispError):
    """Superclass for errors raised while evaluating a syntax tree."""

    def __init__(self, msg, exprs=None):
        super().__init__(msg, exprs, diagnosis=False)


class InvalidParameterCount(EvalError):
    """A builtin was called with the wrong number of arguments."""


class InvalidArgument(EvalError):
    """A special form was given an argument of the wrong shape (e.g. a non-symbol name)."""


class InvalidType(EvalError):
    """An evaluated argument has the wrong type for a builtin."""


class SymbolAlreadyDefined(EvalError):
    """A name was bound twice in the same environment."""

    def __init__(self, name):
        super().__init__("'{}' is already defined", name)
        self.name = name


class SymbolUndefined(EvalError):
    """A symbol was evaluated but is not bound."""

    def __init__(self, name):
        super().__init__("'{}' is not defined", name)
        self.name = name


class OutOfMemory(EvalError):
    """A syntax node could not be allocated."""


class EvaluationDepthExceeded(EvalError):
    """Forms are nested deeper than the machine allows."""


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom tinylisp errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream  # None means sys.stdout at print time
        self.traceback = {}

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called prior to Session add/run."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after successful Session add/run."""
        self.traceback[path] = (None, None)

    @staticmethod
    def diagnose(error, warning=False):
        """Returns the source line containing error.start with the offending part highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        line_start = error.expr.rfind("\n", 0, error.start) + 1
        line_end = error.expr.find("\n", error.start)
        if line_end == -1:
            line_end = len(error.expr)

        line = error.expr[line_start:line_end]
        start = error.start - line_start
        end = max(min(error.end, line_end) - line_start, start + 1)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args. Accepts the same arguments as LispError."""
        error = LispError(*args, **kwargs)

        error_msg = ""
        for file, (line, line_num) in self.traceback.items():
            if line is not None:
                error_msg += colored(f"{file}:{line_num}: ", attrs=["bold"])
                break

        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg
        print(error_msg, file=self.stream)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True), file=self.stream)

    def throw(self, error):
        """Throws error using error and self.traceback. error must be a LispError, and self.traceback must be a dict of
        file: (line, line_num) representing origination of error.
        """
        error_msg = ""
        lines = 0
        for file, (line, line_num) in self.traceback.items():  # dicts are insertion-ordered
            if line:
                first_line = line.strip().split("\n")[0]
                error_msg += f"  File '{file}', line {line_num}:\n"
                error_msg += f"    {first_line}\n"
                lines += 1

        if lines > 1:
            error_msg = "Traceback:\n" + error_msg

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg, file=self.stream)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error), file=self.stream)

        if self.fatal:
            sys.exit(1)
        self.traceback = {path: (None, None) for path in self.traceback}  # reset traceback (no need if fatal)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is None:
            return False
        if issubclass(exc_type, KeyboardInterrupt):
            self.throw(LispError("keyboard interrupt"))
        elif issubclass(exc_type, SystemExit):
            do_exit = True
        elif issubclass(exc_type, RecursionError):
            self.throw(EvaluationDepthExceeded("maximum recursion depth exceeded"))
        elif issubclass(exc_type, LispError):
            self.throw(exc_val)
        else:
            self.throw(LispError("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))
            do_exit = True

        return not do_exit
