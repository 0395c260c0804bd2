import logging
import time

from command_history import HistoryBuffer
from fuzzy_scoring import PartialRatioScorer, SubsequenceScorer, find_matches
from recency_cache import RecencyCache
from shell_config import ShellConfig
from vocabulary import BUILTIN_COMMANDS, collect_commands

logger = logging.getLogger(__name__)

# -------------------------------------------
# Ranking tunables
# -------------------------------------------
RECENCY_LIMIT = 5           # cache hits taken before fuzzy matching
FUZZY_LIMIT = 15            # fuzzy matches kept after sorting
DISPLAY_LIMIT = 10          # suggestions returned to the prompt
RECENCY_BONUS = 20          # bonus for the most recently used command
HISTORY_SUGGEST_LIMIT = 10


class SuggestionEngine:
    """Ranks completion candidates for a partial command line.

    Candidates come from the recency cache (most recently executed
    commands) and from fuzzy matching over the vocabulary and history.
    The engine only reads cache and history in `suggest`; they change
    through `add` when a line is executed.
    """

    def __init__(self, config=None, scorer=None, builtins=BUILTIN_COMMANDS,
                 history=None, cache=None,
                 recency_limit=RECENCY_LIMIT, fuzzy_limit=FUZZY_LIMIT,
                 display_limit=DISPLAY_LIMIT, recency_bonus=RECENCY_BONUS):
        self.config = config if config is not None else ShellConfig()
        self._scorer_override = scorer
        if scorer is None:
            scorer = PartialRatioScorer() if self.config.typo_tolerant else SubsequenceScorer()
        self.scorer = scorer
        self.builtins = list(builtins or [])
        self.recency_limit = recency_limit
        self.fuzzy_limit = fuzzy_limit
        self.display_limit = display_limit
        self.recency_bonus = recency_bonus

        if cache is None:
            cache = RecencyCache(self.config.effective_cache_size)
        if history is None:
            history = HistoryBuffer(self.config.history_size,
                                    path=self.config.history_file or None,
                                    cache=cache)
            history.load_from_disk()
        self.cache = cache
        self.history = history
        self.commands = collect_commands(self.builtins, self.config.allowed_commands)

    def reloaded(self, config):
        """New engine for `config` that keeps this engine's history and cache."""
        return SuggestionEngine(
            config,
            scorer=self._scorer_override,
            builtins=self.builtins,
            history=self.history,
            cache=self.cache,
            recency_limit=self.recency_limit,
            fuzzy_limit=self.fuzzy_limit,
            display_limit=self.display_limit,
            recency_bonus=self.recency_bonus,
        )

    def add(self, command: str) -> bool:
        return self.history.add(command)

    def save(self):
        self.history.save_to_disk()

    def _recency_bonuses(self):
        order = self.cache.snapshot()
        size = len(order)
        return {
            cmd: round(self.recency_bonus * (size - pos) / size)
            for pos, cmd in enumerate(order)
        }

    def suggest(self, prefix: str):
        if not prefix or not prefix.strip():
            return []
        start = time.perf_counter()

        recent = list(self.cache.get_suggestions(prefix, self.recency_limit))
        taken = set(recent)

        history = list(reversed(self.history.snapshot()))
        pool = [cmd for cmd in dict.fromkeys(self.commands + history) if cmd not in taken]
        matches = find_matches(prefix, pool, self.scorer, self.fuzzy_limit)

        merged = recent + [m.command for m in matches]
        merged = merged[: self.display_limit]

        fuzzy_scores = {m.command: m.score for m in matches}
        bonuses = self._recency_bonuses()
        scored = [(cmd, fuzzy_scores.get(cmd, 0) + bonuses.get(cmd, 0)) for cmd in merged]
        # sorted() is stable: ties keep recency-first order
        scored = sorted(scored, key=lambda s: s[1], reverse=True)

        logger.debug("Autocomplete for %r took %.2fms (%d candidates)",
                     prefix, (time.perf_counter() - start) * 1000, len(pool))
        return [cmd for cmd, _ in scored]

    def suggest_history(self, prefix: str):
        """Fuzzy recall over history alone, more recent entries first on ties."""
        if not prefix or not prefix.strip():
            return []
        entries = list(dict.fromkeys(reversed(self.history.snapshot())))
        matches = find_matches(prefix, entries, self.scorer, HISTORY_SUGGEST_LIMIT)
        return [m.command for m in matches]
