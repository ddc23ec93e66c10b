from __future__ import annotations

import argparse
import logging
import os
import secrets

import base58

from .config import Settings, to_display, to_raw
from .coordinator import Lottery
from .keeper import Keeper
from .ledger import load_participants
from .oracle import LocalVrfOracle
from .payments import InMemoryPaymentRail
from .verify import build_audit, verify_audit, write_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


class SimClock:
    """Epoch seconds that only move when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def random_address() -> str:
    return base58.b58encode(os.urandom(32)).decode("ascii")


def cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(
        entry_fee=to_raw(args.entry_fee) if args.entry_fee else None,
        interval_s=args.interval,
    )
    log = logging.getLogger("simulate")

    if args.players_file:
        players = load_participants(args.players_file)
    else:
        players = [random_address() for _ in range(args.players)]
    if not players:
        raise SystemExit("No participants. Check --players / --players-file.")

    secret = settings.oracle_secret
    if not secret:
        secret = secrets.token_hex(32)
        log.info("No ORACLE_SECRET set; using an ephemeral one for this run.")

    clock = SimClock()
    oracle = LocalVrfOracle(secret, clock=clock)
    rail = InMemoryPaymentRail()
    lottery = Lottery(settings, oracle, rail, clock=clock)
    keeper = Keeper(lottery, oracle, poll_interval_s=settings.interval_s + 1, sleep=clock.advance)
    log.info("Secret commitment: %s", oracle.secret_commitment)

    for _ in range(args.rounds):
        for p in players:
            lottery.enter(p, settings.entry_fee)
        clock.advance(settings.interval_s + 1)

        request_id = keeper.tick()
        if request_id is None:
            raise SystemExit("Upkeep was not triggered (unexpected).")
        log.info("Commitment       : %s", oracle.commitment(request_id))
        oracle.fulfill(request_id)

    audit = build_audit(lottery, oracle)
    write_audit(audit, args.out)

    print("========================================")
    print("🎲 VERIFIABLE LOTTERY SIMULATION")
    print("========================================")
    print(f"Entry fee     : {to_display(settings.entry_fee)}")
    print(f"Interval      : {settings.interval_s}s")
    print(f"Participants  : {len(players)}")
    print(f"Secret SHA-256: {oracle.secret_commitment}")
    print("----------------------------------------")
    for record in lottery.get_past_lotteries():
        print(
            f"🏆 Round {record.round_index}: {record.winner} "
            f"won {to_display(record.payout_amount)}"
        )
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit, secret_commitment=args.secret_commitment)
    print("✅ AUDIT VERIFIED")
    print(f"Rounds        : {result['rounds']}")
    for n, winner in enumerate(result["winners"], start=1):
        print(f"Round {n:<8}: {winner}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="verifiable-lottery",
        description="Recurring lottery with verifiable random draws.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument(
        "--entry-fee", default=None, help="Entry fee in display units (else use env)."
    )
    p.add_argument(
        "--interval", type=int, default=None, help="Seconds between draws (else use env)."
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("simulate", help="Run draws on a simulated clock and write an audit JSON.")
    s.add_argument("--players", type=int, default=3, help="Number of generated participants.")
    s.add_argument(
        "--players-file",
        default=None,
        help="File with one participant per line (overrides --players).",
    )
    s.add_argument("--rounds", type=int, default=1, help="Number of rounds to draw.")
    s.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Verify an existing audit.json deterministically.")
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.add_argument(
        "--secret-commitment",
        default=None,
        help="Oracle secret SHA-256 published before the first round.",
    )
    v.set_defaults(func=cmd_verify)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
