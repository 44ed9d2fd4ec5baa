from bots.bot_arena import BOT_REGISTRY, main, run_match
from bots.heuristic import HeuristicBot
from bots.random_bot import RandomBot


def test_run_match_reports_rounds_and_scores():
    results = run_match(HeuristicBot(), RandomBot(seed=1), n_rounds=3, seed=7)
    assert set(results) == {"scores", "game_over", "history"}
    assert 1 <= len(results["history"]) <= 3
    assert [entry["round"] for entry in results["history"]] == list(range(1, len(results["history"]) + 1))
    assert list(results["history"][-1]["scores"]) == results["scores"]
    for entry in results["history"]:
        assert entry["turns"] > 0


def test_run_match_is_reproducible():
    first = run_match(HeuristicBot(), HeuristicBot(), n_rounds=2, seed=3)
    second = run_match(HeuristicBot(), HeuristicBot(), n_rounds=2, seed=3)
    assert first == second


def test_registry_and_cli(capsys):
    assert set(BOT_REGISTRY) == {"heuristic", "random"}
    main(["--bot-a", "heuristic", "--bot-b", "random", "--n", "1", "--seed", "4"])
    out = capsys.readouterr().out
    assert "Scores after 1 rounds" in out
