"""Top-K and minimum-score relevance gate."""

from collections.abc import Sequence

from .models import GateResult, ScoredCandidate

TOP_K = 3
MIN_SCORE = 0.1


def apply_relevance_gate(
    candidates: Sequence[ScoredCandidate],
    top_k: int = TOP_K,
    min_score: float = MIN_SCORE,
) -> GateResult:
    """Decide whether retrieved evidence is strong enough to answer from.

    Candidates are sorted by descending score and truncated to ``top_k``.
    The gate passes only when the input is non-empty and the best score
    reaches ``min_score``; a rejected gate carries no accepted candidates.

    Returns:
        GateResult with the accepted candidates and the best observed score.
    """
    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
    best_score = ranked[0].score if ranked else 0.0

    if not ranked or best_score < min_score:
        return GateResult(accepted=[], best_score=best_score)

    return GateResult(accepted=ranked[:top_k], best_score=best_score)
