"""Attaches application details and USD values to matching results"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List

from grants_matching.errors import ResourceNotFoundError
from grants_matching.models.calculation import AugmentedResult, Calculation
from grants_matching.models.inputs import RawApplication
from grants_matching.services.prices import PriceOracle

logger = logging.getLogger(__name__)

MAX_PRICE_WORKERS = 8

class ResultAugmenter:
    """Joins calculations with their applications and converts matched amounts to USD"""

    def __init__(self, price_oracle: PriceOracle, max_workers: int = MAX_PRICE_WORKERS):
        self.price_oracle = price_oracle
        self.max_workers = max_workers

    def augment(
            self,
            calculations: Dict[str, Calculation],
            applications: Iterable[RawApplication],
            chain_id: int,
            token_address: str
    ) -> List[AugmentedResult]:
        """
        Build the final results, one per calculation, in calculation order.

        Raises:
            ResourceNotFoundError: If a recipient has no matching application
        """
        applications_by_id = {application.id: application for application in applications}

        # resolve every application before any price lookup so a missing one fails fast
        joined = []
        for application_id, calculation in calculations.items():
            application = applications_by_id.get(application_id)
            if application is None:
                raise ResourceNotFoundError(f"application {application_id}")
            joined.append((application, calculation))

        if not joined:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(joined))) as executor:
            conversions = list(executor.map(
                lambda calculation: self.price_oracle.convert_to_usd(chain_id, token_address, calculation.matched),
                [calculation for _, calculation in joined]
            ))

        results = []
        for (application, calculation), conversion in zip(joined, conversions):
            results.append(AugmentedResult(
                total_received=calculation.total_received,
                contributions_count=calculation.contributions_count,
                sum_of_sqrt=calculation.sum_of_sqrt,
                matched_without_cap=calculation.matched_without_cap,
                cap_overflow=calculation.cap_overflow,
                matched=calculation.matched,
                matched_usd=conversion.amount,
                project_id=application.project_id,
                application_id=application.id,
                project_name=application.project_title,
                payout_address=application.payout_address
            ))

        return results
