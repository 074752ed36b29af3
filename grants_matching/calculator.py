"""Matching calculation for a single round"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from grants_matching.config import token_decimals
from grants_matching.eligibility import filter_contributions, index_scores
from grants_matching.errors import ResourceNotFoundError
from grants_matching.matching import QuadraticFundingEngine
from grants_matching.models.calculation import AugmentedResult, LinearQFOptions
from grants_matching.models.inputs import (
    Overrides, RawApplication, RawContribution, RawRound, ReputationScore
)
from grants_matching.services.augmenter import ResultAugmenter
from grants_matching.services.data_provider import DataProvider
from grants_matching.services.prices import PriceOracle

logger = logging.getLogger(__name__)

# Round metadata expresses the minimum donation with 6 decimals of precision
THRESHOLD_DECIMALS = 6

@dataclass
class CalculatorOptions:
    data_provider: DataProvider
    price_oracle: PriceOracle
    chain_id: int
    round_id: str
    minimum_amount: Optional[int] = None
    matching_cap_amount: Optional[int] = None
    passport_threshold: Optional[float] = None
    enable_passport: Optional[bool] = None
    ignore_saturation: Optional[bool] = None
    overrides: Overrides = field(default_factory=dict)

class Calculator:
    """Loads a round's inputs and computes its augmented matching results"""

    def __init__(self, options: CalculatorOptions):
        """Initialize calculator with options"""
        self.options = options
        self.data_provider = options.data_provider
        self.chain_id = options.chain_id
        self.round_id = options.round_id
        self.engine = QuadraticFundingEngine()
        self.augmenter = ResultAugmenter(options.price_oracle)

    def _load(self, description: str, path: str):
        return self.data_provider.load_file(description, path)

    def find_round(self) -> RawRound:
        rounds = [RawRound.from_dict(r) for r in self._load("rounds", f"{self.chain_id}/rounds.json")]
        round_ = next((r for r in rounds if r.id == self.round_id), None)
        if round_ is None:
            raise ResourceNotFoundError("round")

        if round_.match_amount is None:
            raise ResourceNotFoundError("round match amount")

        if round_.token is None:
            raise ResourceNotFoundError("round token")

        return round_

    def resolve_enable_passport(self, round_: RawRound) -> bool:
        if self.options.enable_passport is not None:
            return self.options.enable_passport
        return bool(round_.qf_config.sybil_defense)

    def resolve_minimum_amount(self, round_: RawRound, decimals: int) -> int:
        """
        Explicit minimum, else the round's threshold amount converted to token
        units, 0 when the round sets none.

        The threshold amount applies whether or not minDonationThreshold is
        set. It is truncated to 6 decimals first, then rescaled to the match
        token decimals.
        """
        if self.options.minimum_amount is not None:
            return self.options.minimum_amount

        config = round_.qf_config
        if config.min_donation_threshold_amount is None:
            return 0

        threshold = int(config.min_donation_threshold_amount * 10 ** THRESHOLD_DECIMALS)
        return threshold * 10 ** decimals // 10 ** THRESHOLD_DECIMALS

    def resolve_matching_cap_amount(self, round_: RawRound) -> Optional[int]:
        """Explicit cap, else the round's cap percentage (2 decimal places) of the match amount"""
        if self.options.matching_cap_amount is not None:
            return self.options.matching_cap_amount

        config = round_.qf_config
        if not config.matching_cap or config.matching_cap_amount is None:
            return None

        basis_points = int(config.matching_cap_amount * 100)
        return round_.match_amount * basis_points // 10_000

    def calculate(self) -> List[AugmentedResult]:
        round_ = self.find_round()
        decimals = token_decimals(self.chain_id, round_.token)

        raw_contributions = [
            RawContribution.from_dict(c)
            for c in self._load("votes", f"{self.chain_id}/rounds/{self.round_id}/votes.json")
        ]
        applications = [
            RawApplication.from_dict(a)
            for a in self._load("applications", f"{self.chain_id}/rounds/{self.round_id}/applications.json")
        ]
        scores = index_scores(
            ReputationScore.from_dict(s) for s in self._load("passport scores", "passport_scores.json")
        )

        contributions = filter_contributions(
            raw_contributions,
            scores,
            sybil_defense=self.resolve_enable_passport(round_),
            overrides=self.options.overrides,
            threshold=self.options.passport_threshold
        )
        logger.info(f"{len(contributions)} of {len(raw_contributions)} contributions eligible for round {self.round_id}")

        qf_options = LinearQFOptions(
            minimum_amount=self.resolve_minimum_amount(round_, decimals),
            matching_cap_amount=self.resolve_matching_cap_amount(round_),
            ignore_saturation=bool(self.options.ignore_saturation)
        )
        calculations = self.engine.calculate(contributions, round_.match_amount, decimals, qf_options)

        return self.augmenter.augment(calculations, applications, self.chain_id, round_.token)
