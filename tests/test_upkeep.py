import pytest

from verifiable_lottery.ledger import EntryLedger, Round, RoundState, load_participants
from verifiable_lottery.upkeep import check_upkeep

NOW = 10_000.0


def make_round(**kw):
    defaults = dict(
        entry_fee=100,
        interval_s=60,
        last_draw_timestamp=NOW - 60,
        state=RoundState.OPEN,
        players=["alice"],
        balance=100,
    )
    defaults.update(kw)
    return Round(**defaults)


def test_all_conditions_hold():
    check = check_upkeep(make_round(), NOW)
    assert check.upkeep_needed is True
    assert check.player_count == 1
    assert check.balance == 100


@pytest.mark.parametrize(
    "overrides, flag",
    [
        ({"last_draw_timestamp": NOW - 59}, "time_passed"),
        ({"state": RoundState.DRAWING}, "is_open"),
        ({"balance": 0}, "has_balance"),
        ({"players": []}, "has_players"),
    ],
)
def test_any_failing_condition_blocks_upkeep(overrides, flag):
    check = check_upkeep(make_round(**overrides), NOW)
    assert check.upkeep_needed is False
    assert getattr(check, flag) is False


def test_check_does_not_mutate():
    r = make_round()
    check_upkeep(r, NOW)
    assert r == make_round()


def test_ledger_reset_clears_round():
    r = make_round(players=["alice", "bob"], balance=200)
    EntryLedger(r).reset(NOW)
    assert r.players == []
    assert r.balance == 0
    assert r.last_draw_timestamp == NOW


def test_load_participants_skips_comments(tmp_path):
    path = tmp_path / "players.txt"
    path.write_text("# entrants\nalice\n\n  bob  \n# carol\nalice\n", encoding="utf-8")
    assert load_participants(str(path)) == ["alice", "bob", "alice"]
