"""
Grid search over a single tuning parameter.

The search knows nothing about what it tunes: it evaluates a callable on each
candidate and keeps the lowest score.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from barscope.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TuningResult:
    """Outcome of a grid search."""
    best: float
    score: float
    scores: dict[float, float] = field(default_factory=dict)


def grid_search(
    candidates: Iterable[float],
    evaluate: Callable[[float], float],
    default: float = 0.5,
) -> TuningResult:
    """
    Pick the candidate with the lowest score.

    Candidates are tried in the given order and the first minimum wins ties.

    Args:
        candidates: Values to try
        evaluate: Scoring function, lower is better
        default: Returned with an infinite score when there are no candidates

    Returns:
        TuningResult with the winner, its score and every evaluated score
    """
    scores: dict[float, float] = {}
    best = default
    best_score = float("inf")

    for candidate in candidates:
        score = float(evaluate(candidate))
        scores[candidate] = score
        if score < best_score:
            best, best_score = candidate, score

    logger.debug("grid_search_complete", candidates=len(scores), best=best, score=best_score)
    return TuningResult(best=best, score=best_score, scores=scores)
