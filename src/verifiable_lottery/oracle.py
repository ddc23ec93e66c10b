from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import base58
import httpx

from .config import OracleParams
from .draw import commitment_for, compute_word, derive_seed
from .errors import LotteryError, OracleError, UnknownRequest

log = logging.getLogger("lottery.oracle")

Consumer = Callable[[str, Sequence[int]], Any]


class RandomnessOracle:
    """
    Request/callback boundary to a randomness provider.

    `request_random_words` returns a request id right away. The words arrive
    later, exactly once per request, through the consumer given to `bind`.
    """

    def __init__(self) -> None:
        self._consumer: Optional[Consumer] = None

    def bind(self, consumer: Consumer) -> None:
        self._consumer = consumer

    def request_random_words(self, params: OracleParams) -> str:
        raise NotImplementedError

    def cancel(self, request_id: str) -> None:
        """Stops tracking a request the consumer no longer waits for."""

    def _deliver(self, request_id: str, words: Sequence[int]) -> Any:
        if self._consumer is None:
            raise RuntimeError("Oracle has no consumer bound.")
        return self._consumer(request_id, list(words))


@dataclass(frozen=True)
class Proof:
    request_id: str
    commitment: str
    seed: str
    words: tuple


class LocalVrfOracle(RandomnessOracle):
    """
    HMAC commit-reveal provider.

    `secret_commitment` (sha256 of the secret) is published before the first
    round, and each seed is HMAC(secret, request id), so the operator cannot
    pick a seed after seeing the players. Once the secret is revealed anyone
    can recompute every seed, check it against the per-request commitment
    and rederive the words.
    """

    def __init__(
        self,
        secret: bytes | str,
        delay_s: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._secret = secret.encode("utf-8") if isinstance(secret, str) else secret
        # Published before any round opens; the secret itself is revealed in the audit.
        self.secret_commitment = hashlib.sha256(self._secret).hexdigest()
        self.delay_s = delay_s
        self.clock = clock
        self._nonce = 0
        self._lock = threading.Lock()
        self.proofs: Dict[str, Proof] = {}
        self.pending: List[str] = []

    def _new_request_id(self, params: OracleParams) -> str:
        self._nonce += 1
        material = f"{params.subscription_id}:{params.key_hash}:{self._nonce}:{self.clock()}"
        digest = hashlib.sha256(material.encode("utf-8")).digest()
        return base58.b58encode(digest).decode("ascii")

    def request_random_words(self, params: OracleParams) -> str:
        with self._lock:
            request_id = self._new_request_id(params)
            seed = derive_seed(self._secret, request_id)
            words = [compute_word(seed)[0]]
            for i in range(1, params.num_words):
                words.append(compute_word(f"{seed}:{i}")[0])
            self.proofs[request_id] = Proof(
                request_id=request_id,
                commitment=commitment_for(seed),
                seed=seed,
                words=tuple(words),
            )
            self.pending.append(request_id)

        log.info("Randomness requested: %s", request_id)
        if self.delay_s is not None:
            timer = threading.Timer(self.delay_s, self._deliver_logged, args=(request_id,))
            timer.daemon = True
            timer.start()
        return request_id

    def reveal_secret(self) -> str:
        return self._secret.hex()

    def cancel(self, request_id: str) -> None:
        with self._lock:
            if request_id in self.pending:
                self.pending.remove(request_id)

    def commitment(self, request_id: str) -> str:
        return self.proofs[request_id].commitment

    def fulfill(self, request_id: str) -> Any:
        """Delivers the words for `request_id`; may be repeated to redeliver."""
        with self._lock:
            proof = self.proofs.get(request_id)
            if proof is None:
                raise OracleError(f"Oracle never issued request {request_id}")
            if request_id in self.pending:
                self.pending.remove(request_id)
        return self._deliver(request_id, proof.words)

    def fulfill_all(self) -> int:
        with self._lock:
            ids = list(self.pending)
        for request_id in ids:
            self.fulfill(request_id)
        return len(ids)

    def _deliver_logged(self, request_id: str) -> None:
        # Timer threads have no caller to raise to.
        try:
            self.fulfill(request_id)
        except LotteryError as e:
            log.warning("Delivery of %s failed: %s", request_id, e)
        except Exception:
            log.exception("Delivery of %s crashed", request_id)


class HttpOracleClient(RandomnessOracle):
    """JSON-RPC client for a remote randomness provider."""

    def __init__(
        self,
        oracle_url: str,
        timeout_s: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__()
        self.oracle_url = oracle_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self.outstanding: List[str] = []

    def close(self) -> None:
        self.client.close()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.client.post(self.oracle_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise OracleError(f"Oracle transport error: {e}") from e
        if "error" in data:
            raise OracleError(f"RPC error: {data['error']}")
        return data

    def request_random_words(self, params: OracleParams) -> str:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "requestRandomWords",
            "params": [params.as_payload()],
        }
        data = self._post(payload)
        result = data.get("result")
        if isinstance(result, dict):
            result = result.get("requestId")
        if not result:
            raise OracleError("requestRandomWords returned no requestId.")
        request_id = str(result)
        self.outstanding.append(request_id)
        log.info("Randomness requested: %s", request_id)
        return request_id

    def cancel(self, request_id: str) -> None:
        if request_id in self.outstanding:
            self.outstanding.remove(request_id)
            log.info("Stopped polling for %s", request_id)

    def get_fulfillment(self, request_id: str) -> Optional[List[int]]:
        """Returns the random words once the provider has them, else None."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getFulfillment",
            "params": [request_id],
        }
        data = self._post(payload)
        result = data.get("result")
        if not result:
            return None
        words = result.get("randomWords") if isinstance(result, dict) else None
        if not words:
            raise OracleError(f"Fulfillment for {request_id} carries no randomWords.")
        # Words may come back as decimal ints or 0x-prefixed hex strings.
        return [int(w, 0) if isinstance(w, str) else int(w) for w in words]

    def poll(self) -> int:
        delivered = 0
        for request_id in list(self.outstanding):
            words = self.get_fulfillment(request_id)
            if words is None:
                continue
            # PayoutFailed propagates and leaves the request outstanding,
            # so the next poll retries the payout.
            try:
                self._deliver(request_id, words)
            except UnknownRequest:
                log.warning("Dropping fulfillment for unknown request %s", request_id)
                self.outstanding.remove(request_id)
                continue
            self.outstanding.remove(request_id)
            delivered += 1
        return delivered
