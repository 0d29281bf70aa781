"""Pluggable selection among canned response variants."""

import random
from itertools import count
from typing import Optional, Protocol, Sequence


class ResponsePicker(Protocol):
    def pick(self, options: Sequence[str]) -> str: ...


class RandomPicker:
    """Random variant; pass a seed for reproducible runs."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._random = random.Random(seed)

    def pick(self, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("No response options to pick from")
        return self._random.choice(list(options))


class RoundRobinPicker:
    """Cycles through variants in order across calls."""

    def __init__(self) -> None:
        self._counter = count()

    def pick(self, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("No response options to pick from")
        return options[next(self._counter) % len(options)]


class FirstPicker:
    """Always the first variant."""

    def pick(self, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("No response options to pick from")
        return options[0]
