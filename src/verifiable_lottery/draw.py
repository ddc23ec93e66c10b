from __future__ import annotations

import hashlib
import hmac
from typing import Sequence, Tuple


def derive_seed(secret: bytes, request_id: str) -> str:
    """Per-request seed; only the holder of the secret can produce it."""
    return hmac.new(secret, request_id.encode("utf-8"), hashlib.sha256).hexdigest()


def commitment_for(seed_hex: str) -> str:
    return hashlib.sha256(f"commit:{seed_hex}".encode("utf-8")).hexdigest()


def compute_word(seed_hex: str) -> Tuple[int, str]:
    seed_hash_hex = hashlib.sha256(seed_hex.encode("utf-8")).hexdigest()
    return int(seed_hash_hex, 16), seed_hash_hex


def winner_index(random_word: int, player_count: int) -> int:
    if player_count <= 0:
        raise RuntimeError("Cannot pick a winner from an empty round (unexpected).")
    return random_word % player_count


def pick_winner(players: Sequence[str], random_word: int) -> Tuple[int, str]:
    idx = winner_index(random_word, len(players))
    return idx, players[idx]
