"""Insert promotional unclaimed-studio cards into the tattoo stream.

After every ``cadence``-th tattoo the next unused promo is placed. Promos
left over once the tattoos run out go at the end. For 20 tattoos and
5 promos at cadence 6 the merged list puts promos at positions 7, 14 and
21 and the remaining two after the last tattoo.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, TypeVar

from inkedin.constants import PROMO_CADENCE

T = TypeVar("T")


def interleave(tattoos: Iterable[T], promos: Iterable[T], cadence: int = PROMO_CADENCE) -> list[T]:
    """Merge one complete result set."""
    return Interleaver(cadence).extend(tattoos, promos, final=True)


class Interleaver:
    """Incremental interleaving across pages of one session.

    The tattoo count carries over between pages, so the cadence is
    continuous across page boundaries. Unused promos wait in a queue and
    are only flushed when the caller says the session has no more pages.
    """

    def __init__(self, cadence: int = PROMO_CADENCE) -> None:
        if cadence < 1:
            raise ValueError(f"cadence must be >= 1, got {cadence}")
        self.cadence = cadence
        self._tattoo_count = 0
        self._promos: deque = deque()

    @property
    def pending_promos(self) -> int:
        return len(self._promos)

    def extend(self, tattoos: Iterable[T], promos: Iterable[T] = (), final: bool = False) -> list[T]:
        """Merge one page and return the cards to append, in order."""
        self._promos.extend(promos)
        out: list[T] = []
        for tattoo in tattoos:
            out.append(tattoo)
            self._tattoo_count += 1
            if self._tattoo_count % self.cadence == 0 and self._promos:
                out.append(self._promos.popleft())
        if final:
            out.extend(self._promos)
            self._promos.clear()
        return out
