"""Tests for suggestion ranking."""

from fuzzy_scoring import PartialRatioScorer
from shell_config import ShellConfig
from suggestion_engine import DISPLAY_LIMIT, SuggestionEngine
from vocabulary import BUILTIN_COMMANDS


def make_engine(history_size=100, allowed=None, builtins=(), **kwargs):
    config = ShellConfig(history_size=history_size, allowed_commands=list(allowed or []))
    return SuggestionEngine(config, builtins=builtins, **kwargs)


class TestSuggest:
    """Merging recency and fuzzy candidates."""

    def test_empty_prefix(self):
        engine = make_engine(allowed=["ls"])
        engine.add("ls")
        assert engine.suggest("") == []
        assert engine.suggest("   ") == []

    def test_contiguous_match_ranks_first(self):
        engine = make_engine(allowed=["go build", "go install", "go test"])
        result = engine.suggest("go b")
        assert result[0] == "go build"
        for other in ("go install", "go test"):
            if other in result:
                assert result.index("go build") < result.index(other)

    def test_more_recent_wins(self):
        engine = make_engine(history_size=3, builtins=BUILTIN_COMMANDS)
        for cmd in ("ls", "go test", "go build"):
            engine.add(cmd)
        result = engine.suggest("go")
        assert result.index("go build") < result.index("go test")

    def test_recency_bonus_order(self):
        engine = make_engine()
        engine.add("alpha")
        engine.add("alpine")
        assert engine.suggest("alp") == ["alpine", "alpha"]

    def test_dedup_across_passes(self):
        engine = make_engine(allowed=["go build", "go test"])
        engine.add("go build")
        engine.add("ls")
        engine.add("go build")
        result = engine.suggest("go")
        assert result.count("go build") == 1
        assert set(result) == {"go build", "go test"}

    def test_bounded(self):
        engine = make_engine(allowed=[f"cmd{i}" for i in range(40)])
        for i in range(40, 80):
            engine.add(f"cmd{i}")
        assert len(engine.suggest("c")) <= DISPLAY_LIMIT
        assert len(engine.suggest("cmd")) == DISPLAY_LIMIT

    def test_custom_display_limit(self):
        engine = make_engine(allowed=["go build", "go test"], display_limit=1)
        assert len(engine.suggest("go")) == 1

    def test_does_not_mutate_state(self):
        engine = make_engine(allowed=["go build"])
        engine.add("go test")
        engine.add("ls")
        cache_before = engine.cache.snapshot()
        history_before = engine.history.snapshot()
        engine.suggest("go")
        assert engine.cache.snapshot() == cache_before
        assert engine.history.snapshot() == history_before

    def test_case_insensitive(self):
        engine = make_engine(allowed=["Git Status"])
        assert engine.suggest("git st") == ["Git Status"]

    def test_no_match(self):
        engine = make_engine(allowed=["ls"])
        assert engine.suggest("zzz") == []

    def test_pluggable_scorer(self):
        engine = make_engine(allowed=["git status"])
        assert engine.suggest("gti status") == []
        typo_engine = make_engine(allowed=["git status"], scorer=PartialRatioScorer())
        assert typo_engine.suggest("gti status") == ["git status"]

    def test_none_config_uses_defaults(self):
        engine = SuggestionEngine(None)
        assert engine.commands == BUILTIN_COMMANDS
        assert engine.history.path is None
        assert set(engine.suggest("hel")[:2]) == {"help", "hello"}


class TestCompositeScore:
    """Fuzzy score plus recency bonus, then a stable sort."""

    def test_bonus_values_are_rounded(self):
        engine = make_engine()
        for cmd in ("a", "b", "c"):
            engine.add(cmd)
        assert engine._recency_bonuses() == {"c": 20, "b": 13, "a": 7}

    def test_bonus_spread_over_cache(self):
        engine = make_engine()
        for cmd in ("a", "b", "c", "d"):
            engine.add(cmd)
        assert engine._recency_bonuses() == {"d": 20, "c": 15, "b": 10, "a": 5}

    def test_empty_cache_has_no_bonus(self):
        assert make_engine()._recency_bonuses() == {}

    def test_recency_only_candidate_has_no_fuzzy_score(self):
        engine = make_engine(allowed=["deploy"])
        engine.add("kubectl deploy app")
        assert engine.suggest("deploy") == ["deploy", "kubectl deploy app"]

    def test_ties_keep_recency_pass_first(self):
        def flat_scorer(query, candidate):
            return 20 if query in candidate else None

        engine = make_engine(allowed=["xa", "xc"], scorer=flat_scorer)
        engine.add("xb")
        assert engine.suggest("x") == ["xb", "xa", "xc"]

    def test_bonus_breaks_fuzzy_tie(self):
        def flat_scorer(query, candidate):
            return 50 if query in candidate else None

        engine = make_engine(allowed=["xa", "xb"], scorer=flat_scorer, recency_limit=0)
        engine.add("xb")
        assert engine.suggest("x") == ["xb", "xa"]


class TestSuggestHistory:
    """History-only recall."""

    def test_empty_prefix(self):
        engine = make_engine()
        engine.add("ls")
        assert engine.suggest_history("") == []

    def test_ignores_vocabulary(self):
        engine = make_engine(allowed=["go build"])
        engine.add("go test")
        assert engine.suggest_history("go") == ["go test"]

    def test_ties_prefer_recent(self):
        engine = make_engine()
        engine.add("go aaa")
        engine.add("go bbb")
        assert engine.suggest_history("GO") == ["go bbb", "go aaa"]

    def test_capped(self):
        engine = make_engine()
        for i in range(30):
            engine.add(f"cmd {i}")
        assert len(engine.suggest_history("cmd")) == 10

    def test_whitespace_prefix(self):
        engine = make_engine()
        engine.add("a  b")
        assert engine.suggest_history("  ") == []
        assert engine.suggest_history("\t") == []


class TestLifecycle:
    """Construction, persistence and reload."""

    def test_loads_history_file(self, tmp_path):
        path = tmp_path / "hist"
        path.write_text("go test\nls\n", encoding="utf-8")
        engine = SuggestionEngine(ShellConfig(history_file=str(path)), builtins=[])
        assert engine.history.snapshot() == ["go test", "ls"]
        assert engine.suggest("go") == ["go test"]

    def test_save(self, tmp_path):
        path = tmp_path / "hist"
        engine = SuggestionEngine(ShellConfig(history_file=str(path)))
        engine.add("ls")
        engine.add("pwd")
        engine.save()
        assert path.read_text(encoding="utf-8") == "ls\npwd"

    def test_cache_size_defaults_to_history_size(self):
        engine = make_engine(history_size=3)
        assert engine.cache.capacity == 3
        config = ShellConfig(history_size=3, cache_size=2)
        assert SuggestionEngine(config).cache.capacity == 2

    def test_typo_tolerant_config_selects_scorer(self):
        config = ShellConfig(allowed_commands=["git status"], typo_tolerant=True)
        engine = SuggestionEngine(config, builtins=[])
        assert isinstance(engine.scorer, PartialRatioScorer)
        assert engine.suggest("gti status") == ["git status"]

    def test_reloaded_keeps_explicit_scorer(self):
        scorer = PartialRatioScorer(cutoff=80)
        engine = make_engine(scorer=scorer)
        assert engine.reloaded(engine.config.with_allowed("ls")).scorer is scorer

    def test_reloaded_shares_history_and_cache(self):
        engine = make_engine()
        engine.add("ls")
        new = engine.reloaded(engine.config.with_allowed("kubectl get pods"))
        assert new is not engine
        assert new.history is engine.history
        assert new.cache is engine.cache
        assert "kubectl get pods" in new.commands
        assert "kubectl get pods" not in engine.commands
        assert new.suggest("kub") == ["kubectl get pods"]
