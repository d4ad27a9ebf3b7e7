"""
Candidate panels and the single-swap neighbourhood.

A panel is stored as pool positions split into a member list and an
outsider list, with a slot index for every position, so that membership
tests, uniform picks from either side and swaps are all constant time.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class Move:
    """Swap of one member for one outsider"""
    removed: int        # pool position leaving the panel
    added: int          # pool position entering the panel
    member_slot: int    # index of `removed` in the member list
    outsider_slot: int  # index of `added` in the outsider list


class CandidateMarkerSet:
    """Fixed-size subset of pool positions 0..pool_size-1"""

    def __init__(self, members: Sequence[int], pool_size: int):
        members = [int(m) for m in members]
        if len(set(members)) != len(members):
            raise ValueError("Candidate panel contains duplicate markers")
        if any(m < 0 or m >= pool_size for m in members):
            raise ValueError(f"Candidate panel position outside pool of size {pool_size}")

        self.pool_size = pool_size
        self._is_member = [False] * pool_size
        for m in members:
            self._is_member[m] = True

        self._members = members
        self._outsiders = [p for p in range(pool_size) if not self._is_member[p]]

        self._slot = [0] * pool_size
        for i, m in enumerate(self._members):
            self._slot[m] = i
        for j, p in enumerate(self._outsiders):
            self._slot[p] = j

    @classmethod
    def random(cls, size: int, pool_size: int, rng: np.random.Generator) -> "CandidateMarkerSet":
        """Uniform random panel of `size` distinct positions"""
        members = rng.choice(pool_size, size=size, replace=False)
        return cls(members.tolist(), pool_size)

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, position: int) -> bool:
        return 0 <= position < self.pool_size and self._is_member[position]

    @property
    def members(self) -> Tuple[int, ...]:
        return tuple(self._members)

    @property
    def outsiders(self) -> Tuple[int, ...]:
        return tuple(self._outsiders)

    @property
    def n_outsiders(self) -> int:
        return len(self._outsiders)

    def member_at(self, slot: int) -> int:
        return self._members[slot]

    def outsider_at(self, slot: int) -> int:
        return self._outsiders[slot]

    def sorted_members(self) -> List[int]:
        return sorted(self._members)

    def members_with(self, move: Move) -> List[int]:
        """Member list as it would read after applying `move`"""
        members = list(self._members)
        members[move.member_slot] = move.added
        return members

    def apply(self, move: Move):
        """Perform the swap in place"""
        if (self._members[move.member_slot] != move.removed
                or self._outsiders[move.outsider_slot] != move.added):
            raise ValueError(f"Move does not match the current panel: {move}")

        self._members[move.member_slot] = move.added
        self._outsiders[move.outsider_slot] = move.removed
        self._slot[move.added] = move.member_slot
        self._slot[move.removed] = move.outsider_slot
        self._is_member[move.added] = True
        self._is_member[move.removed] = False

    def copy(self) -> "CandidateMarkerSet":
        """Independent copy keeping member and outsider slot order"""
        clone = CandidateMarkerSet.__new__(CandidateMarkerSet)
        clone.pool_size = self.pool_size
        clone._is_member = self._is_member.copy()
        clone._members = self._members.copy()
        clone._outsiders = self._outsiders.copy()
        clone._slot = self._slot.copy()
        return clone


class RandomMoveGenerator:
    """Proposes uniform single-marker swaps"""

    def propose(self, candidate: CandidateMarkerSet, rng: np.random.Generator) -> Move:
        """
        Pick one member and one outsider uniformly at random

        Raises:
            ConfigurationError: If the panel already holds the whole pool
        """
        if candidate.n_outsiders == 0:
            raise ConfigurationError(
                "No legal move: panel size equals the marker pool size"
            )

        member_slot = int(rng.integers(0, len(candidate)))
        outsider_slot = int(rng.integers(0, candidate.n_outsiders))
        return Move(
            removed=candidate.member_at(member_slot),
            added=candidate.outsider_at(outsider_slot),
            member_slot=member_slot,
            outsider_slot=outsider_slot
        )

    def neighbor(self, candidate: CandidateMarkerSet, rng: np.random.Generator) -> CandidateMarkerSet:
        """New panel one swap away from `candidate`; the input is left untouched"""
        move = self.propose(candidate, rng)
        result = candidate.copy()
        result.apply(move)
        return result
