import argparse
import logging
import math
import shlex
import time
from dataclasses import replace

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import (
    Completer,
    Completion,
    NestedCompleter,
    PathCompleter,
    merge_completers,
)
from prompt_toolkit.enums import EditingMode
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import clear

from command_history import HistorySaveError
from shell_config import ShellConfig
from suggestion_engine import SuggestionEngine

logger = logging.getLogger(__name__)

# Sub-command completions offered next to the ranked suggestions
SUBCOMMANDS = {
    "mode": {"vi", "emacs"},
    "go": {
        "build": {"-o": None, "-v": None},
        "install": {"-v", "-vv", "-vvv"},
        "test": None,
    },
}

EDITING_MODES = {"vi": EditingMode.VI, "emacs": EditingMode.EMACS}


class CommandCompleter(Completer):
    """Shows the engine's ranked suggestions for the whole line."""

    def __init__(self, engine: SuggestionEngine):
        self.engine = engine

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.strip():
            return
        for s in self.engine.suggest(text):
            yield Completion(
                s,
                start_position=-len(text),
                display=s,
                display_meta="recent" if s in self.engine.cache else "",
            )


class HistoryAutoSuggest(AutoSuggest):
    """Greyed-out inline suggestion taken from the best history match."""

    def __init__(self, engine: SuggestionEngine):
        self.engine = engine

    def get_suggestion(self, buffer, document):
        text = document.text
        if not text.strip():
            return None
        for s in self.engine.suggest_history(text):
            if s.startswith(text) and s != text:
                return Suggestion(s[len(text):])
        return None


def build_completer(command_completer):
    nested = NestedCompleter.from_nested_dict(dict(SUBCOMMANDS, say=PathCompleter()))
    return merge_completers([command_completer, nested], deduplicate=True)


def _unquote(text):
    try:
        parts = shlex.split(text)
    except ValueError:
        return text.strip()
    return " ".join(parts) if len(parts) > 1 else (parts[0] if parts else "")


class Shell:
    """Built-in command handling around a suggestion engine."""

    def __init__(self, config: ShellConfig, engine=None, session=None):
        self.config = config
        self.engine = engine if engine is not None else SuggestionEngine(config)
        self.session = session
        self.prompt = config.prompt
        self.completer = CommandCompleter(self.engine)
        self.auto_suggest = HistoryAutoSuggest(self.engine)

    def reload(self, config: ShellConfig):
        self.config = config
        self.engine = self.engine.reloaded(config)
        self.completer.engine = self.engine
        self.auto_suggest.engine = self.engine

    def handle(self, line: str) -> bool:
        """Run one input line. Returns False when the shell should exit."""
        line = line.strip()
        if not line:
            return True
        if self.config.is_blocked(line):
            print(f"Blocked command: {line}")
            return True

        self.engine.add(line)
        name, _, rest = line.partition(" ")
        rest = rest.strip()

        if name in ("exit", "bye"):
            print("Goodbye!")
            return False
        if name == "help":
            print("Commands: " + ", ".join(self.engine.commands))
            print("Also: history [-c], save, allow CMD")
        elif name == "clear":
            clear()
        elif name == "hello":
            print("Hello!")
        elif name == "say":
            print(_unquote(rest))
        elif name == "setprompt":
            self.prompt = _unquote(rest) or self.config.prompt
        elif name == "mode":
            self._set_mode(rest)
        elif name == "sleep":
            self._sleep(rest)
        elif name == "history":
            self._history(rest)
        elif name == "save":
            self.save()
        elif name == "allow":
            if not rest:
                print("usage: allow COMMAND")
            else:
                self.reload(self.config.with_allowed(rest))
                print(f"Allowed: {rest}")
        else:
            print(f"Executing: {line}\n")
        return True

    def _set_mode(self, arg):
        mode = EDITING_MODES.get(arg)
        if mode is None:
            print("usage: mode vi|emacs")
            return
        if self.session is not None:
            self.session.editing_mode = mode
        print(f"Editing mode: {arg}")

    def _sleep(self, arg):
        try:
            seconds = float(arg)
        except ValueError:
            seconds = math.nan
        if not math.isfinite(seconds):
            print("usage: sleep SECONDS")
            return
        time.sleep(max(seconds, 0))

    def _history(self, arg):
        if arg == "-c":
            self.engine.history.clear()
            return
        for i, cmd in enumerate(self.engine.history.snapshot(), 1):
            print(f"{i:5d}  {cmd}")

    def save(self) -> bool:
        try:
            self.engine.save()
        except HistorySaveError as e:
            print(f"Could not save history: {e}")
            return False
        return True


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Line-editing shell with ranked command suggestions")
    p.add_argument("--history-file", default=None, help="history file (default: ~/.pty_history)")
    p.add_argument("--history-size", type=int, default=None, help="number of commands kept")
    p.add_argument("--no-history", action="store_true", help="do not load or save history")
    p.add_argument("--allow", action="append", default=[], metavar="CMD",
                   help="extra command offered as a suggestion (repeatable)")
    p.add_argument("--typo-tolerant", action="store_true",
                   help="match commands with typos instead of strict subsequences")
    p.add_argument("-d", "--debug", action="store_true", help="debug logging")
    return p.parse_args(argv)


def build_config(args, environ=None):
    config = ShellConfig.from_env(environ)
    if args.history_file is not None:
        config = replace(config, history_file=args.history_file)
    if args.history_size is not None:
        config = replace(config, history_size=args.history_size)
    if args.no_history:
        config = replace(config, history_file="")
    if args.typo_tolerant:
        config = replace(config, typo_tolerant=True)
    if args.allow:
        config = config.with_allowed(*args.allow)
    return config.normalized()


def main_loop(shell: Shell):
    session = PromptSession()
    shell.session = session
    completer = build_completer(shell.completer)
    print(shell.config.welcome_message)

    try:
        while True:
            try:
                with patch_stdout():
                    text = session.prompt(
                        shell.prompt,
                        completer=completer,
                        complete_while_typing=True,
                        auto_suggest=shell.auto_suggest if shell.config.auto_suggest else None,
                    )
            except KeyboardInterrupt:
                continue
            if not shell.handle(text):
                break
    except EOFError:
        print("\nGoodbye!")
    finally:
        shell.save()


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    config = build_config(args)
    logger.debug("Starting shell with %s", config)
    main_loop(Shell(config))


if __name__ == "__main__":
    main()
