"""Linear quadratic funding (CLR) matching"""
import logging
from dataclasses import dataclass, field
from math import isqrt
from typing import Dict, Iterable, List, Optional, Tuple

from grants_matching.models.calculation import Calculation, Contribution, LinearQFOptions

logger = logging.getLogger(__name__)

@dataclass
class RecipientContributions:
    """Counted contributions of one recipient, summed per contributor"""
    by_contributor: Dict[str, int] = field(default_factory=dict)
    total_received: int = 0
    count: int = 0

def apportion(amount: int, weights: Dict[str, int]) -> Dict[str, int]:
    """
    Split an integer amount proportionally to integer weights.

    Floors each share, then hands the leftover units to the largest
    remainders (first key wins ties) so the shares add up to amount exactly.
    """
    total = sum(weights.values())
    if total <= 0:
        return {key: 0 for key in weights}

    shares = {}
    remainders = []
    for key, weight in weights.items():
        share, remainder = divmod(amount * weight, total)
        shares[key] = share
        remainders.append((remainder, key))

    leftover = amount - sum(shares.values())
    remainders.sort(key=lambda item: item[0], reverse=True)
    for _, key in remainders[:leftover]:
        shares[key] += 1

    return shares

class SaturationCapper:
    """Scales subsidies down to the pool when they exceed it"""

    def apply(self, subsidies: Dict[str, int], match_amount: int, ignore_saturation: bool) -> Dict[str, int]:
        total = sum(subsidies.values())
        if ignore_saturation or total <= match_amount:
            # ignore_saturation pays subsidies as computed, even above the pool
            return dict(subsidies)

        logger.info(f"Subsidies saturated: {total} > {match_amount}, scaling down")
        return apportion(match_amount, subsidies)

class CapRedistributor:
    """Clamps recipients to the matching cap and hands the excess to the others"""

    def apply(self, matched: Dict[str, int], cap: int) -> Tuple[Dict[str, int], Dict[str, int]]:
        """
        Water-fill matched amounts under a per recipient cap.

        Returns:
            Tuple of (capped matched amounts, undistributed excess per recipient)
        """
        matched = dict(matched)
        overflow = {recipient: 0 for recipient in matched}
        capped = set()

        # every pass that continues caps at least one more recipient
        for _ in range(len(matched)):
            over_cap = [r for r, amount in matched.items() if r not in capped and amount > cap]
            if not over_cap:
                break

            excess = {}
            for recipient in over_cap:
                excess[recipient] = matched[recipient] - cap
                matched[recipient] = cap
                capped.add(recipient)

            uncapped = {r: amount for r, amount in matched.items() if r not in capped and amount > 0}
            if not uncapped:
                for recipient, amount in excess.items():
                    overflow[recipient] += amount
                break

            for recipient, share in apportion(sum(excess.values()), uncapped).items():
                matched[recipient] += share

        return matched, overflow

class QuadraticFundingEngine:
    """Computes per recipient matching from eligible contributions"""

    def __init__(self):
        self.saturation = SaturationCapper()
        self.cap_redistributor = CapRedistributor()

    def aggregate(self, contributions: Iterable[Contribution], minimum_amount: int) -> Dict[str, RecipientContributions]:
        """Drop contributions below the minimum and group the rest by recipient"""
        recipients: Dict[str, RecipientContributions] = {}
        for contribution in contributions:
            if contribution.amount < minimum_amount:
                continue

            entry = recipients.setdefault(contribution.recipient, RecipientContributions())
            entry.by_contributor[contribution.contributor] = (
                entry.by_contributor.get(contribution.contributor, 0) + contribution.amount
            )
            entry.total_received += contribution.amount
            entry.count += 1

        return recipients

    def sum_of_sqrt(self, entry: RecipientContributions, scale: int) -> int:
        """Sum of square roots, computed on amounts multiplied by scale to keep precision"""
        return sum(isqrt(amount * scale) for amount in entry.by_contributor.values())

    def subsidy(self, sum_of_sqrt: int, total_received: int, scale: int) -> int:
        """(sum of sqrt)^2 - sum, floored at zero against integer sqrt rounding"""
        return max(sum_of_sqrt * sum_of_sqrt // scale - total_received, 0)

    def calculate(
            self,
            contributions: Iterable[Contribution],
            match_amount: int,
            decimals: int,
            options: Optional[LinearQFOptions] = None
    ) -> Dict[str, Calculation]:
        options = options or LinearQFOptions()
        scale = 10 ** decimals

        recipients = self.aggregate(contributions, options.minimum_amount)
        if not recipients:
            return {}

        calculations: Dict[str, Calculation] = {}
        subsidies: Dict[str, int] = {}
        for recipient, entry in recipients.items():
            sum_of_sqrt = self.sum_of_sqrt(entry, scale)
            subsidies[recipient] = self.subsidy(sum_of_sqrt, entry.total_received, scale)
            calculations[recipient] = Calculation(
                total_received=entry.total_received,
                contributions_count=entry.count,
                sum_of_sqrt=sum_of_sqrt
            )

        matched = self.saturation.apply(subsidies, match_amount, options.ignore_saturation)
        for recipient, amount in matched.items():
            calculations[recipient].matched_without_cap = amount

        if options.matching_cap_amount is not None:
            matched, overflow = self.cap_redistributor.apply(matched, options.matching_cap_amount)
            for recipient, amount in overflow.items():
                calculations[recipient].cap_overflow = amount

        for recipient, amount in matched.items():
            calculations[recipient].matched = amount

        logger.info(
            f"Calculated matching for {len(calculations)} recipients, "
            f"total matched {sum(matched.values())} of {match_amount}"
        )
        return calculations

def linear_qf(
        contributions: List[Contribution],
        match_amount: int,
        decimals: int,
        options: Optional[LinearQFOptions] = None
) -> Dict[str, Calculation]:
    return QuadraticFundingEngine().calculate(contributions, match_amount, decimals, options)
