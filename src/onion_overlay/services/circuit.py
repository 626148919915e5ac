"""Circuit selection."""

from __future__ import annotations

import random
from collections.abc import Iterable, Iterator

from onion_overlay.core.errors import InsufficientNodesError

CIRCUIT_LENGTH = 3

_system_random = random.SystemRandom()


class Circuit:
    """An ordered path of distinct relay ids, used for exactly one message."""

    __slots__ = ("_hops",)

    def __init__(self, hops: Iterable[int]) -> None:
        hops = tuple(int(hop) for hop in hops)
        if len(hops) != CIRCUIT_LENGTH:
            raise ValueError(f"A circuit has exactly {CIRCUIT_LENGTH} hops, got {len(hops)}")
        if len(set(hops)) != len(hops):
            raise ValueError("Circuit hops must be distinct")
        self._hops = hops

    @property
    def hops(self) -> tuple[int, ...]:
        return self._hops

    @property
    def entry(self) -> int:
        """The relay the sender talks to."""
        return self._hops[0]

    def __getitem__(self, index: int) -> int:
        return self._hops[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._hops)

    def __len__(self) -> int:
        return len(self._hops)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Circuit):
            return self._hops == other._hops
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._hops)

    def __repr__(self) -> str:
        return f"Circuit({list(self._hops)!r})"


def build_circuit(
    nodes: Iterable[int],
    length: int = CIRCUIT_LENGTH,
    rng: random.Random | None = None,
) -> Circuit:
    """Pick an unpredictable ordered circuit from the known relays.

    Args:
        nodes: Relay ids known to the directory.
        length: Number of hops; only the protocol length of 3 is accepted.
        rng: Randomness source; defaults to the OS-backed ``SystemRandom``.

    Returns:
        A circuit of distinct relay ids.

    Raises:
        InsufficientNodesError: If fewer than ``length`` distinct relays are known.
    """
    if length != CIRCUIT_LENGTH:
        raise ValueError(f"Circuit length is fixed at {CIRCUIT_LENGTH}")

    candidates = sorted(set(nodes))
    if len(candidates) < length:
        raise InsufficientNodesError(
            f"Need at least {length} relays to build a circuit, directory has {len(candidates)}"
        )

    # random.shuffle is an unbiased Fisher-Yates pass
    (rng or _system_random).shuffle(candidates)
    return Circuit(candidates[:length])
