"""
Candidate aggregation: priority-ordered dedup of every adapter's output.
"""
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import structlog

from nexuslib.candidates import CandidateGame, Mechanism
from nexuslib.titles import normalize_title

logger = structlog.get_logger("aggregator")


def order_by_priority(results, priority) -> List[Tuple[Mechanism, List[CandidateGame]]]:
    """
    Sort a {mechanism: candidates} mapping by the configured priority list.
    Mechanisms missing from the list keep their relative order at the end.
    """
    ranking = {}
    for index, name in enumerate(priority or []):
        mechanism = Mechanism.parse(name)
        if mechanism is not None and mechanism not in ranking:
            ranking[mechanism] = index

    items = list(results.items())
    return sorted(items, key=lambda item: ranking.get(item[0], len(ranking)))


class CandidateAggregator:
    """
    First writer wins: a candidate is kept only if both its canonical key and
    its normalized title are still unseen. Ignored titles/keys are dropped
    before that check.
    """

    def __init__(self, ignored_titles: Iterable[str] = (), ignored_keys: Iterable[str] = ()):
        self.ignored_titles = {normalize_title(t) for t in ignored_titles if t}
        self.ignored_keys = set(k for k in ignored_keys if k)
        self.dropped_ignored = 0
        self.dropped_duplicates = 0

    def is_ignored(self, candidate: CandidateGame) -> bool:
        return candidate.normalized_title in self.ignored_titles or candidate.canonical_key in self.ignored_keys

    def aggregate(
        self,
        results: Sequence[Tuple[Mechanism, Iterable[CandidateGame]]],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[CandidateGame]:
        seen_keys = set()
        seen_titles = set()
        output = []

        for mechanism, candidates in results:
            for candidate in candidates:
                if should_cancel and should_cancel():
                    logger.info("Aggregation cancelled", kept=len(output))
                    return output

                if self.is_ignored(candidate):
                    self.dropped_ignored += 1
                    continue

                key = candidate.canonical_key
                title = candidate.normalized_title
                if key in seen_keys or title in seen_titles:
                    self.dropped_duplicates += 1
                    logger.debug(f"Skipping duplicate {candidate.title} from {getattr(mechanism, 'value', mechanism)}")
                    continue

                seen_keys.add(key)
                seen_titles.add(title)
                output.append(candidate)

        logger.info(
            f"Aggregated {len(output)} unique games",
            duplicates=self.dropped_duplicates,
            ignored=self.dropped_ignored,
        )
        return output
