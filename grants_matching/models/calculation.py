"""Inputs and outputs of the quadratic funding engine"""
from dataclasses import dataclass
from typing import Optional
from pydantic import BaseModel

@dataclass
class Contribution:
    """An eligible contribution, amount in match token units"""
    contributor: str
    recipient: str
    amount: int

@dataclass
class LinearQFOptions:
    minimum_amount: int = 0
    matching_cap_amount: Optional[int] = None
    ignore_saturation: bool = False

@dataclass
class Calculation:
    """Matching outcome for one recipient"""
    total_received: int = 0
    contributions_count: int = 0
    sum_of_sqrt: int = 0
    matched_without_cap: int = 0
    # Excess removed by the matching cap that could not be handed to anyone
    cap_overflow: int = 0
    matched: int = 0

class AugmentedResult(BaseModel):
    """
    Final matching result for an application.

    Attributes:
        matched: Matched amount in match token units
        matched_usd: Matched amount converted to USD
        total_received: Sum of counted contributions in match token units
        contributions_count: Number of counted contributions
        project_id / application_id: Identity of the recipient
        project_name / payout_address: Taken from the application metadata
    """
    total_received: int
    contributions_count: int
    sum_of_sqrt: int
    matched_without_cap: int
    cap_overflow: int
    matched: int
    matched_usd: float
    project_id: str
    application_id: str
    project_name: Optional[str] = None
    payout_address: Optional[str] = None
