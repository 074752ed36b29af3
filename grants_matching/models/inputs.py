"""Typed records read from the round input files"""
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

Overrides = Dict[str, str]

@dataclass
class RawContribution:
    """A single vote/donation as exported for a round"""
    id: str
    voter: str
    project_id: str
    application_id: str
    amount_usd: float
    amount_round_token: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawContribution':
        return cls(
            id=data['id'],
            voter=data['voter'],
            project_id=data.get('projectId', ''),
            application_id=data['applicationId'],
            amount_usd=float(data.get('amountUSD', 0)),
            amount_round_token=int(data['amountRoundToken'])
        )

@dataclass
class QuadraticFundingConfig:
    """Round level QF settings, all optional in the round metadata"""
    matching_funds_available: Optional[float] = None
    sybil_defense: Optional[bool] = None
    matching_cap: bool = False
    # Percentage of the pool, 0 to 100, up to 2 decimal places
    matching_cap_amount: Optional[Decimal] = None
    # Amount with up to 6 decimals of precision
    min_donation_threshold_amount: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'QuadraticFundingConfig':
        data = data or {}
        return cls(
            matching_funds_available=data.get('matchingFundsAvailable'),
            sybil_defense=data.get('sybilDefense'),
            matching_cap=bool(data.get('matchingCap', False)),
            matching_cap_amount=_to_decimal(data.get('matchingCapAmount')),
            min_donation_threshold_amount=_to_decimal(data.get('minDonationThresholdAmount'))
        )

@dataclass
class RawRound:
    id: str
    token: Optional[str]
    match_amount: Optional[int]
    match_amount_usd: float
    qf_config: QuadraticFundingConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawRound':
        metadata = data.get('metadata') or {}
        match_amount = data.get('matchAmount')
        return cls(
            id=data['id'],
            token=data.get('token'),
            match_amount=int(match_amount) if match_amount is not None else None,
            match_amount_usd=float(data.get('matchAmountUSD') or 0),
            qf_config=QuadraticFundingConfig.from_dict(metadata.get('quadraticFundingConfig'))
        )

@dataclass
class RawApplication:
    id: str
    project_id: str
    round_id: str
    project_title: Optional[str]
    payout_address: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawApplication':
        application = (data.get('metadata') or {}).get('application') or {}
        project = application.get('project') or {}
        return cls(
            id=data['id'],
            project_id=data.get('projectId', ''),
            round_id=data.get('roundId', ''),
            project_title=project.get('title'),
            payout_address=application.get('recipient')
        )

@dataclass
class Evidence:
    success: bool
    # None when the scorer sent no usable number
    raw_score: Optional[float]

@dataclass
class ReputationScore:
    """Passport score of an address. evidence is None when the scorer returned none."""
    address: str
    evidence: Optional[Evidence] = None

    @property
    def passing(self) -> bool:
        return self.evidence is not None and self.evidence.success

    @property
    def raw_score(self) -> Optional[float]:
        return self.evidence.raw_score if self.evidence is not None else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReputationScore':
        evidence = data.get('evidence')
        parsed = None
        if isinstance(evidence, dict):
            parsed = Evidence(
                success=bool(evidence.get('success', False)),
                raw_score=_to_float(evidence.get('rawScore'))
            )
        return cls(address=data['address'], evidence=parsed)

def _to_float(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number

def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None
