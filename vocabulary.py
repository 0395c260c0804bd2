# Commands the shell itself understands; always offered as suggestions.
BUILTIN_COMMANDS = [
    "mode", "login", "say", "hello", "bye", "setprompt",
    "clear", "exit", "setpassword", "help", "go", "sleep",
]


def collect_commands(builtins=BUILTIN_COMMANDS, allowed=None):
    """Union of built-in and allowed commands, first occurrence wins.

    Entries are full example invocations ("go build -o app"), so no
    syntax checks are made beyond dropping blanks.
    """
    seen = {}
    for cmd in list(builtins or []) + list(allowed or []):
        if cmd is None:
            continue
        cmd = cmd.strip()
        if cmd and cmd not in seen:
            seen[cmd] = None
    return list(seen)
