"""Decides which raw contributions count toward matching"""
from typing import Dict, Iterable, List, Optional

from grants_matching.models.calculation import Contribution
from grants_matching.models.inputs import Overrides, RawContribution, ReputationScore

KEEP_COEFFICIENT = "1"

def is_eligible(
        contribution: RawContribution,
        score: Optional[ReputationScore],
        sybil_defense: bool,
        overrides: Overrides,
        threshold: Optional[float] = None
) -> bool:
    """
    Check a single contribution against overrides and sybil defense.

    Args:
        contribution: Raw contribution from the round export
        score: Passport score of the voter, None when the voter has none
        sybil_defense: Whether the round requires a passport
        overrides: contributionId -> coefficient map
        threshold: Optional raw score the voter must strictly exceed

    Returns:
        True when the contribution counts toward matching
    """
    coefficient = overrides.get(contribution.id)
    if coefficient is not None and coefficient != KEEP_COEFFICIENT:
        return False

    if not sybil_defense:
        return True

    if score is None:
        return False

    if threshold is not None:
        raw_score = score.raw_score
        return raw_score is not None and raw_score > threshold

    return score.passing

def index_scores(scores: Iterable[ReputationScore]) -> Dict[str, ReputationScore]:
    return {score.address: score for score in scores}

def filter_contributions(
        contributions: Iterable[RawContribution],
        scores: Dict[str, ReputationScore],
        sybil_defense: bool,
        overrides: Overrides,
        threshold: Optional[float] = None
) -> List[Contribution]:
    """Keep eligible contributions and convert them for the engine"""
    eligible = []
    for raw in contributions:
        if not is_eligible(raw, scores.get(raw.voter), sybil_defense, overrides, threshold):
            continue

        eligible.append(Contribution(
            contributor=raw.voter,
            recipient=raw.application_id,
            amount=raw.amount_round_token
        ))

    return eligible
