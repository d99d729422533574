"""Interactive completion front-ends.

Every picker offers the same two calls:

  select(prompt, candidates, default=None)  pick one of a fixed list
  complete(prompt, source, initial="")      free text, with source(text) -> [str]
                                            consulted for suggestions

so the suggestion client never needs to know which one is in use.
"""

import logging
import sys

try:
    import readline
    HAS_READLINE = True
except ImportError:  # Windows without pyreadline
    HAS_READLINE = False

log = logging.getLogger("zimlook.pickers")


class PlainPicker:
    """Generic fallback: type the answer, no suggestions."""

    def __init__(self, input_fn=input, output=None):
        self._input = input_fn
        self._output = output

    @property
    def output(self):
        return self._output or sys.stderr

    def _ask(self, prompt):
        try:
            # input() prompts on stdout, which is reserved for results unless it is a terminal
            if self._input is input and sys.stdout.isatty():
                return self._input(prompt).strip()
            print(prompt, end="", file=self.output, flush=True)
            return self._input("").strip()
        except (EOFError, KeyboardInterrupt):
            print(file=self.output)
            return ""

    def _with_default(self, prompt, default):
        return f"{prompt.rstrip(': ')} [{default}]: " if default else prompt

    def select(self, prompt, candidates, default=None):
        answer = self._ask(self._with_default(prompt, default))
        return answer or (default or "")

    def complete(self, prompt, source, initial=""):
        answer = self._ask(self._with_default(prompt, initial))
        return answer or initial


class MenuPicker(PlainPicker):
    """Blocking list: show numbered choices, read a number or keep the text."""

    def _choose(self, prompt, options, fallback):
        if not options:
            return fallback
        for i, option in enumerate(options, 1):
            print(f"  {i:>2}. {option}", file=self.output)
        answer = self._ask(prompt)
        if not answer:
            return fallback
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        return answer

    def select(self, prompt, candidates, default=None):
        candidates = list(candidates)
        fallback = default or (candidates[0] if len(candidates) == 1 else "")
        return self._choose(self._with_default(prompt, fallback), candidates, fallback)

    def complete(self, prompt, source, initial=""):
        text = self._ask(self._with_default(prompt, initial)) or initial
        if not text:
            return ""
        return self._choose("Choose a number, or Enter to keep your text: ", source(text), text)


class ReadlinePicker(PlainPicker):
    """Incremental: TAB asks source() for fresh suggestions on every press."""

    def _complete_with(self, options_fn, prompt, initial):
        def completer(text, state):
            if state == 0:
                completer.matches = options_fn(readline.get_line_buffer())
            matches = completer.matches
            return matches[state] if state < len(matches) else None
        completer.matches = []

        old_completer = readline.get_completer()
        old_delims = readline.get_completer_delims()
        readline.set_completer(completer)
        # Complete the whole line: suggestions contain spaces
        readline.set_completer_delims("")
        readline.parse_and_bind("tab: complete")
        if initial:
            readline.set_startup_hook(lambda: readline.insert_text(initial))
        try:
            return self._ask(prompt)
        finally:
            readline.set_startup_hook(None)
            readline.set_completer(old_completer)
            readline.set_completer_delims(old_delims)

    def select(self, prompt, candidates, default=None):
        candidates = list(candidates)
        options_fn = lambda text: [c for c in candidates if c.startswith(text)]
        answer = self._complete_with(options_fn, self._with_default(prompt, default), "")
        return answer or (default or "")

    def complete(self, prompt, source, initial=""):
        return self._complete_with(source, prompt, initial)


PICKERS = {
    "plain": PlainPicker,
    "menu": MenuPicker,
    "readline": ReadlinePicker,
}


def make_picker(config, input_fn=input, output=None):
    name = config.completion
    if name == "readline" and not HAS_READLINE:
        log.debug("readline not available, using menu picker")
        name = "menu"
    return PICKERS[name](input_fn=input_fn, output=output)
