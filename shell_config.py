import logging
import os
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)

# All environment overrides use this prefix, e.g. PTY_HISTORY_SIZE=500
ENV_PREFIX = "PTY_"

HISTORY_SIZE_FLOOR = 100
DEFAULT_HISTORY_FILE = ".pty_history"
DEFAULT_BLOCKED_COMMANDS = ["rm -rf /", "mkfs", "dd if=/dev/random"]


@dataclass(frozen=True)
class ShellConfig:
    """Settings for the shell and its suggestion engine.

    Values are plain data; build a new instance (see `with_allowed`,
    `normalized`) instead of mutating one that an engine already uses.
    """

    prompt: str = "> "
    welcome_message: str = "Welcome to the Kariuki!"
    history_size: int = 1000
    history_file: str = ""
    # 0 means "same as history_size"
    cache_size: int = 0
    allowed_commands: list = field(default_factory=list)
    blocked_commands: list = field(default_factory=list)
    auto_suggest: bool = True
    # partial-ratio matching instead of ordered subsequences
    typo_tolerant: bool = False

    @property
    def effective_cache_size(self):
        return self.cache_size if self.cache_size > 0 else self.history_size

    def normalized(self):
        history_size = self.history_size
        if history_size < HISTORY_SIZE_FLOOR:
            logger.info("history_size %d is below %d, clamping", history_size, HISTORY_SIZE_FLOOR)
            history_size = HISTORY_SIZE_FLOOR

        history_file = self.history_file
        if history_file and not os.path.isabs(history_file):
            # ".pty_history" -> "/home/user/.pty_history"
            history_file = os.path.join(os.path.expanduser("~"), history_file)

        blocked = _clean_list(self.blocked_commands) or list(DEFAULT_BLOCKED_COMMANDS)

        return replace(
            self,
            history_size=history_size,
            history_file=history_file,
            cache_size=max(self.cache_size, 0),
            allowed_commands=_clean_list(self.allowed_commands),
            blocked_commands=blocked,
        )

    def with_allowed(self, *commands):
        allowed = list(self.allowed_commands)
        for cmd in _clean_list(commands):
            if cmd not in allowed:
                allowed.append(cmd)
        return replace(self, allowed_commands=allowed)

    def is_blocked(self, command: str) -> bool:
        command = command.strip()
        return any(command == b or command.startswith(b + " ") for b in self.blocked_commands)

    @classmethod
    def from_env(cls, environ=None):
        """Build a normalized config from PTY_* environment variables.

        Malformed values are logged and replaced by their defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name, default):
            return env.get(ENV_PREFIX + name, default)

        return cls(
            prompt=get("PROMPT", defaults.prompt),
            welcome_message=get("WELCOME_MESSAGE", defaults.welcome_message),
            history_size=_parse_int(get("HISTORY_SIZE", None), defaults.history_size, "HISTORY_SIZE"),
            history_file=get("HISTORY_FILE", DEFAULT_HISTORY_FILE),
            cache_size=_parse_int(get("CACHE_SIZE", None), defaults.cache_size, "CACHE_SIZE"),
            allowed_commands=_split_list(get("ALLOWED_COMMANDS", "")),
            blocked_commands=_split_list(get("BLOCKED_COMMANDS", "")),
            auto_suggest=_parse_bool(get("AUTO_SUGGEST", None), defaults.auto_suggest),
            typo_tolerant=_parse_bool(get("TYPO_TOLERANT", None), defaults.typo_tolerant),
        ).normalized()


def _clean_list(items):
    return [s.strip() for s in (items or []) if s and s.strip()]


def _split_list(value, delimiter=","):
    if not value:
        return []
    return _clean_list(value.split(delimiter))


def _parse_int(value, default, name):
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring invalid %s%s=%r, using %d", ENV_PREFIX, name, value, default)
        return default


def _parse_bool(value, default):
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
