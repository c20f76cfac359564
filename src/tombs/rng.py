from __future__ import annotations

import hashlib
import json
import logging
import random
from typing import Any, Dict, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _to_stable_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class GameRandom:
    """The single random generator of a game run.

    One instance is created per run from a master seed and handed explicitly to
    everything that needs randomness (confused monsters, damage jitter, level
    seeds). Nothing in the package touches the module-level ``random`` state.

    - ``derive_seed`` maps (domain, identifiers) to a 64-bit seed that depends
      only on the master seed, so a level layout does not depend on how many
      random draws happened before it.
    - ``get_state``/``set_state`` produce and accept JSON-friendly data for
      save files.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = random.SystemRandom().getrandbits(32)
            logger.info("No seed provided; generated random seed %d", seed)
        self._seed = int(seed)
        self._rng = random.Random(self._seed)
        logger.debug("GameRandom initialised with seed=%d", self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def rng(self) -> random.Random:
        return self._rng

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """Derive a 64-bit integer seed from the master seed and domain identifiers."""
        payload = {
            "domain": domain,
            "ids": list(identifiers),
            "master": self._seed,
            "algo": "blake2b-64",
            "version": 1,
        }
        data = _to_stable_json(payload).encode("utf-8")
        digest = hashlib.blake2b(data, digest_size=8).digest()
        derived = int.from_bytes(digest, "big", signed=False)
        logger.debug("Derived seed for domain=%s ids=%s -> %d", domain, identifiers, derived)
        return derived

    # Delegated random methods

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise ValueError("GameRandom.choice() received an empty sequence")
        return self._rng.choice(seq)

    def weighted_choice(self, weights: Dict[T, int]) -> T:
        """Pick a key of ``weights`` proportionally to its (non-negative) weight.

        Zero weights are skipped; all-zero weights raise ValueError.
        """
        keys: List[T] = []
        cumulative: List[int] = []
        total = 0
        for key, weight in weights.items():
            if weight < 0:
                raise ValueError(f"Weight for {key!r} must be non-negative, got {weight}")
            if weight == 0:
                continue
            total += weight
            keys.append(key)
            cumulative.append(total)
        if total == 0:
            raise ValueError("All weights are zero; cannot make a weighted choice")

        roll = self._rng.randrange(total)
        for key, bound in zip(keys, cumulative):
            if roll < bound:
                return key
        return keys[-1]

    # State snapshots

    def get_state(self) -> Dict[str, Any]:
        version, internal, gauss_next = self._rng.getstate()
        return {
            "seed": self._seed,
            "version": version,
            "internal": list(internal),
            "gauss_next": gauss_next,
        }

    def set_state(self, state: Dict[str, Any]) -> None:
        self._seed = int(state["seed"])
        self._rng.setstate((state["version"], tuple(state["internal"]), state["gauss_next"]))

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "GameRandom":
        inst = cls(int(state["seed"]))
        inst.set_state(state)
        return inst


__all__ = ["GameRandom"]
