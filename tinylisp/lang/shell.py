"""Read-eval-print loop for tinylisp on top of cmd. Every form is evaluated in the same command-line Session, so defvar
bindings carry over from one line to the next.
"""

import cmd


class Shell(cmd.Cmd):
    """tinylisp shell. A line that leaves parentheses open is buffered, and the form is evaluated once a later line
    balances it.
    """
    intro = "tinylisp :: Python backend\nType 'help' for an introduction, 'exit' or Ctrl-D to leave."
    primary_prompt = "> "
    continuation_prompt = ". "
    prompt = primary_prompt

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self.pending = []  # lines of a form that is still open
        self.line_num = 0

    def onecmd(self, line):
        """Inside an open form every line is source text, even one that starts like a command."""
        if self.pending and line != "EOF":
            return self.default(line)
        return super().onecmd(line)

    def default(self, line):
        """Buffers line and evaluates the buffered form once its parentheses balance."""
        self.line_num += 1
        self.pending.append(line)

        source, is_open = self.sess.preprocess_line("\n".join(self.pending))
        if is_open:
            self.prompt = Shell.continuation_prompt
            return

        self.pending.clear()
        self.prompt = Shell.primary_prompt

        with self.sess.error_handler:  # cmd.Cmd would otherwise leave the loop on the first error
            self.sess.add(source, self.line_num)
            self.sess.run()
            if self.sess.results:
                self.stdout.write(self.sess.pop() + "\n")

    def emptyline(self):
        """Blank lines are ignored instead of repeating the last form."""
        return False

    def do_help(self, arg):
        builtins = " ".join(self.sess.machine.registry.names())
        self.stdout.write(
            "Welcome to the tinylisp interpreter!\n\n"
            "Type a form and press enter to evaluate it, e.g. '(+ 1 2)'. A form left with open\n"
            "parentheses continues on the next line. Bind names with '(defvar x 5)' and scope\n"
            "them with '(let ((y 10)) (+ x y))'. Names can never be redefined or shadowed.\n\n"
            f"Builtins: {builtins}\n")

    def do_exit(self, arg):
        """Leaves the shell."""
        return True

    def do_EOF(self, arg):
        self.stdout.write("\n")
        return True
