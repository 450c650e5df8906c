"""
Analyzer/Rules.py — Ordered first-match-wins rule lists.

Classification policies are expressed as a :class:`RuleList` of
``(predicate, result)`` pairs so the priority order is data, not control
flow, and a policy can be swapped without touching its callers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, TypeVar

S = TypeVar("S")
R = TypeVar("R")


@dataclass(frozen=True)
class Rule(Generic[S, R]):
    """A single predicate and the result it yields when it matches."""

    predicate: Callable[[S], bool]
    result: R
    name: str = ""


class RuleList(Generic[S, R]):
    """An ordered list of rules evaluated first-match-wins."""

    def __init__(self, rules: Iterable[Rule[S, R]], default: R) -> None:
        self.rules: tuple[Rule[S, R], ...] = tuple(rules)
        self.default = default

    def evaluate(self, subject: S) -> R:
        """Return the result of the first matching rule, or :attr:`default`."""
        for rule in self.rules:
            if rule.predicate(subject):
                return rule.result
        return self.default

    def __len__(self) -> int:
        return len(self.rules)


def contains_any(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)
