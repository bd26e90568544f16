"""Title similarity on top of rapidfuzz.

Scores are normalized to ``0..1``. Titles go through
``rapidfuzz.utils.default_process`` once; titles that normalize to nothing are
dropped so two blank strings never count as a perfect match.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

# rapidfuzz scorer contract: (query, choice, **kwargs) -> score in 0..100
TitleScorer: TypeAlias = Callable[..., float]

DEFAULT_SCORER: TitleScorer = fuzz.ratio


def normalize_title(title: str) -> str:
    return default_process(title)


def normalize_titles(titles: Iterable[str]) -> list[str]:
    normalized: list[str] = []
    for title in titles:
        value = normalize_title(title)
        if value and value not in normalized:
            normalized.append(value)
    return normalized


def title_similarity(
    left: Iterable[str], right: Iterable[str], *, scorer: TitleScorer = DEFAULT_SCORER
) -> float:
    """Best score between any title of ``left`` and any title of ``right``."""

    choices = normalize_titles(right)
    best = 0.0
    if not choices:
        return best
    for query in normalize_titles(left):
        result = process.extractOne(query, choices, scorer=scorer, processor=None)
        if result is not None and result[1] > best:
            best = float(result[1])
    return best / 100.0


@dataclass(frozen=True, slots=True)
class ScoredCandidates:
    """Per-entry best scores at or above the threshold, plus the overall best."""

    above_threshold: tuple[tuple[int, float], ...]
    best: tuple[int, float] | None


class TitleIndex:
    """Normalized titles of one catalog, flattened for bulk scoring.

    Entries are referred to by their position in the sequence the index was
    built from.
    """

    def __init__(self, titles_per_entry: Iterable[Iterable[str]]) -> None:
        self._choices: list[str] = []
        self._owners: list[int] = []
        for position, titles in enumerate(titles_per_entry):
            for title in normalize_titles(titles):
                self._choices.append(title)
                self._owners.append(position)

    def __len__(self) -> int:
        return len(self._choices)

    def score(
        self,
        queries: Sequence[str],
        *,
        threshold: float,
        scorer: TitleScorer = DEFAULT_SCORER,
    ) -> ScoredCandidates:
        normalized = normalize_titles(queries)
        cutoff = threshold * 100.0
        best_by_owner: dict[int, float] = {}
        for query in normalized:
            for _choice, raw, choice_index in process.extract(
                query,
                self._choices,
                scorer=scorer,
                processor=None,
                score_cutoff=cutoff,
                limit=None,
            ):
                if raw < cutoff:
                    continue
                owner = self._owners[choice_index]
                score = raw / 100.0
                if score > best_by_owner.get(owner, -1.0):
                    best_by_owner[owner] = score

        if best_by_owner:
            ranked = sorted(best_by_owner.items(), key=lambda item: (-item[1], item[0]))
            return ScoredCandidates(above_threshold=tuple(ranked), best=ranked[0])
        return ScoredCandidates(above_threshold=(), best=self._overall_best(normalized, scorer))

    def _overall_best(
        self, queries: Sequence[str], scorer: TitleScorer
    ) -> tuple[int, float] | None:
        best: tuple[int, float] | None = None
        for query in queries:
            result = process.extractOne(query, self._choices, scorer=scorer, processor=None)
            if result is None or result[1] <= 0:
                continue
            _choice, raw, choice_index = result
            owner = self._owners[choice_index]
            score = raw / 100.0
            if best is None or score > best[1] or (score == best[1] and owner < best[0]):
                best = (owner, score)
        return best
