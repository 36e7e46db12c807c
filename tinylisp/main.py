"""Runs tinylisp programs from a file or stdin, or in command-line mode. Also uses error handling context manager.
Called from the tinylisp console script.
"""

import argparse
import logging
import sys

from tinylisp.core.machine import Machine
from tinylisp.lang.error import ErrorHandler
from tinylisp.lang.session import Session
from tinylisp.lang.shell import Shell


def configure_logging(verbosity):
    """Sets the level of the tinylisp loggers: warnings only by default, INFO with -v, DEBUG with -vv."""
    logging.basicConfig(format="%(name)s: %(levelname)s: %(message)s")
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.getLogger("tinylisp").setLevel(level)


def main(argv=None):
    """Runs tinylisp interpreter. Called from tinylisp console script."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="tinylisp")
        parser.add_argument("file", help="file to interpret and run (if empty, reads piped stdin or goes to "
                                         "command-line mode)", nargs="?")
        parser.add_argument("--max-depth", help="maximum nesting of evaluated forms", type=int,
                            default=Machine.MAX_DEPTH)
        parser.add_argument("--ast", help="print the parsed syntax tree instead of evaluating", action="store_true")
        parser.add_argument("-v", "--verbose", help="log progress (repeat for debug output)", action="count",
                            default=0)
        args = parser.parse_args(argv)

        configure_logging(args.verbose)

        if args.file is None and sys.stdin.isatty():
            with Session(error_handler, Session.SH_FILE, cmd_line=True, max_depth=args.max_depth) as sess:
                Shell(sess).cmdloop()
            return

        path = args.file if args.file is not None else Session.STDIN_FILE
        with Session(error_handler, path, cmd_line=False, max_depth=args.max_depth) as sess:
            if args.ast:
                for program in sess.programs():
                    print(program.display())
            else:
                sess.run()
                print(sess.pop())


if __name__ == "__main__":
    main()
