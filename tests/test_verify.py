import json

import pytest

from conftest import ENTRY_FEE, INTERVAL_S
from verifiable_lottery.draw import commitment_for, compute_word, pick_winner
from verifiable_lottery.verify import build_audit, verify_audit, write_audit


@pytest.fixture
def audit_path(ready_lottery, oracle, clock, tmp_path):
    oracle.fulfill(ready_lottery.perform_upkeep())
    ready_lottery.enter("dave", ENTRY_FEE)
    ready_lottery.enter("erin", ENTRY_FEE)
    clock.advance(INTERVAL_S)
    oracle.fulfill(ready_lottery.perform_upkeep())

    path = tmp_path / "audit.json"
    write_audit(build_audit(ready_lottery, oracle), str(path))
    return path


def tamper(path, fn):
    audit = json.loads(path.read_text(encoding="utf-8"))
    fn(audit)
    path.write_text(json.dumps(audit), encoding="utf-8")


def test_audit_verifies(audit_path, ready_lottery):
    result = verify_audit(str(audit_path))

    assert result["ok"] is True
    assert result["rounds"] == 2
    assert result["winners"] == [r.winner for r in ready_lottery.get_past_lotteries()]


def test_audit_contents(audit_path, oracle):
    audit = json.loads(audit_path.read_text(encoding="utf-8"))
    first = audit["rounds"][0]

    assert audit["metadata"]["round_count"] == 2
    assert first["round_index"] == 1
    assert first["entrants"] == ["alice", "bob", "carol"]
    assert first["commitment"] == oracle.commitment(first["request_id"])
    assert first["payout_amount"] == str(3 * ENTRY_FEE)


def test_tampered_winner_detected(audit_path):
    def swap(audit):
        r = audit["rounds"][0]
        others = [e for e in r["entrants"] if e != r["winner"]]
        r["winner"] = others[0]

    tamper(audit_path, swap)
    with pytest.raises(RuntimeError, match="winner mismatch"):
        verify_audit(str(audit_path))


def test_tampered_seed_detected(audit_path):
    tamper(audit_path, lambda a: a["rounds"][1].update(seed="00" * 32))
    with pytest.raises(RuntimeError, match="committed secret"):
        verify_audit(str(audit_path))


def test_round_gap_detected(audit_path):
    tamper(audit_path, lambda a: a["rounds"][1].update(round_index=3))
    with pytest.raises(RuntimeError, match="gap"):
        verify_audit(str(audit_path))


def test_forged_draw_detected(audit_path):
    """A self-consistent seed chosen after the fact still fails verification."""
    audit = json.loads(audit_path.read_text(encoding="utf-8"))
    r = audit["rounds"][0]
    loser = next(e for e in r["entrants"] if e != r["winner"])

    for i in range(1000):
        seed = f"{i:064x}"
        word, _ = compute_word(seed)
        idx, winner = pick_winner(r["entrants"], word)
        if winner == loser:
            break
    r.update(
        seed=seed,
        commitment=commitment_for(seed),
        random_word=str(word),
        winner_index=idx,
        winner=winner,
    )
    audit_path.write_text(json.dumps(audit), encoding="utf-8")

    with pytest.raises(RuntimeError, match="committed secret"):
        verify_audit(str(audit_path))


def test_swapped_secret_detected(audit_path):
    tamper(audit_path, lambda a: a["metadata"].update(oracle_secret="ab" * 32))
    with pytest.raises(RuntimeError, match="does not match its commitment"):
        verify_audit(str(audit_path))


def test_published_secret_commitment_checked(audit_path, oracle):
    assert verify_audit(str(audit_path), secret_commitment=oracle.secret_commitment)["ok"]
    with pytest.raises(RuntimeError, match="Secret commitment mismatch"):
        verify_audit(str(audit_path), secret_commitment="00" * 32)
