from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .coordinator import Lottery
from .draw import commitment_for, compute_word, derive_seed, pick_winner
from .oracle import LocalVrfOracle


def build_audit(lottery: Lottery, oracle: LocalVrfOracle) -> Dict[str, Any]:
    """Everything needed to re-run each finished draw from scratch."""
    rounds: List[Dict[str, Any]] = []
    for record in lottery.get_past_lotteries():
        proof = oracle.proofs[record.request_id]
        idx, _ = pick_winner(record.entrants, record.random_word)
        rounds.append(
            {
                "round_index": record.round_index,
                "timestamp": record.timestamp,
                "request_id": record.request_id,
                "commitment": proof.commitment,
                "seed": proof.seed,
                "random_word": str(record.random_word),  # big int; store as string for safety
                "winner_index": idx,
                "winner": record.winner,
                "payout_amount": str(record.payout_amount),
                "entrants": list(record.entrants),
            }
        )

    return {
        "metadata": {
            "tool": "verifiable-lottery",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "entry_fee": str(lottery.get_entry_fee()),
            "interval_s": lottery.get_interval(),
            "round_count": len(rounds),
            "oracle_secret_commitment": oracle.secret_commitment,
            "oracle_secret": oracle.reveal_secret(),
        },
        "rounds": rounds,
    }


def write_audit(audit: Dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)


def verify_rounds(
    audit: Dict[str, Any], secret_commitment: Optional[str] = None
) -> Dict[str, Any]:
    """
    Re-runs every draw in `audit`.

    `secret_commitment` is the oracle secret hash published before round 1;
    when given, it must match the one recorded in the audit.
    """
    meta = audit["metadata"]
    entry_fee = int(meta["entry_fee"])
    recorded = meta["oracle_secret_commitment"]
    if secret_commitment is not None and secret_commitment != recorded:
        raise RuntimeError(
            f"Secret commitment mismatch: published={secret_commitment} audit={recorded}"
        )
    secret = bytes.fromhex(meta["oracle_secret"])
    if hashlib.sha256(secret).hexdigest() != recorded:
        raise RuntimeError("Revealed oracle secret does not match its commitment")
    rounds = audit["rounds"]
    winners: List[str] = []

    for expected_index, r in enumerate(rounds, start=1):
        n = int(r["round_index"])
        if n != expected_index:
            raise RuntimeError(f"Round index gap: expected {expected_index}, found {n}")

        seed = r["seed"]
        if derive_seed(secret, r["request_id"]) != seed:
            raise RuntimeError(f"Round {n}: seed was not derived from the committed secret")
        if commitment_for(seed) != r["commitment"]:
            raise RuntimeError(f"Round {n}: seed does not match the published commitment")

        word, _ = compute_word(seed)
        if word != int(r["random_word"]):
            raise RuntimeError(
                f"Round {n}: random word mismatch: audit={r['random_word']} recomputed={word}"
            )

        entrants = r["entrants"]
        if not entrants:
            raise RuntimeError(f"Round {n}: no entrants recorded")
        idx, winner = pick_winner(entrants, word)
        if idx != int(r["winner_index"]) or winner != r["winner"]:
            raise RuntimeError(
                f"Round {n}: winner mismatch: audit={r['winner']} recomputed={winner}"
            )

        if int(r["payout_amount"]) < entry_fee * len(entrants):
            raise RuntimeError(
                f"Round {n}: payout {r['payout_amount']} is less than the entries collected"
            )
        winners.append(winner)

    return {"ok": True, "rounds": len(rounds), "winners": winners}


def verify_audit(audit_path: str, secret_commitment: Optional[str] = None) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)
    return verify_rounds(audit, secret_commitment)
