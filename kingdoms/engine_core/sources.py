"""
Sources - Randomness, identifiers and time, injected into the engine.

The engine itself never touches global randomness or the wall clock.
Pass a seeded Sources to get reproducible decks, ids and replays.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import random
import time
import uuid


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Sources:
    """
    Bundle of external inputs used by the engine.

    rng:    uniform random source for shuffling
    new_id: returns a fresh unique string id
    clock:  returns a millisecond timestamp
    """
    rng: random.Random = field(default_factory=random.Random)
    new_id: Callable[[], str] = field(default=lambda: str(uuid.uuid4()))
    clock: Callable[[], int] = field(default=_wall_clock_ms)

    @classmethod
    def seeded(cls, seed: int, clock: Callable[[], int] | None = None) -> Sources:
        """
        Deterministic sources: shuffles and ids both derive from `seed`.

        Ids are drawn from a separate generator so that adding or removing
        id allocations never changes shuffle order.
        """
        rng = random.Random(seed)
        id_rng = random.Random(f"ids-{seed}")
        return cls(
            rng=rng,
            new_id=lambda: str(uuid.UUID(int=id_rng.getrandbits(128), version=4)),
            clock=clock or _wall_clock_ms,
        )


def default_sources() -> Sources:
    """Fresh unseeded sources."""
    return Sources()
