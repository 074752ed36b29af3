"""
Changes applied to persisted round state.

Every mutation of projects, roles, rounds, applications, donations and
prices is expressed as one of the change kinds below. Row payloads are
dicts keyed by the attribute names of the models in models/db.py.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Row = Dict[str, Any]

@dataclass(frozen=True)
class InsertPendingProjectRole:
    pending_project_role: Row

@dataclass(frozen=True)
class DeletePendingProjectRoles:
    ids: List[int]

@dataclass(frozen=True)
class InsertProject:
    project: Row

@dataclass(frozen=True)
class UpdateProject:
    chain_id: int
    project_id: str
    project: Row

@dataclass(frozen=True)
class InsertProjectRole:
    project_role: Row

@dataclass(frozen=True)
class DeleteAllProjectRolesByRole:
    """Revoke a role on a project, for every address or only for address"""
    chain_id: int
    project_id: str
    role: str
    address: Optional[str] = None

@dataclass(frozen=True)
class InsertRound:
    round: Row

@dataclass(frozen=True)
class UpdateRound:
    chain_id: int
    round_id: str
    round: Row

@dataclass(frozen=True)
class InsertApplication:
    application: Row

@dataclass(frozen=True)
class UpdateApplication:
    chain_id: int
    round_id: str
    application_id: str
    application: Row

@dataclass(frozen=True)
class InsertDonation:
    """Queued and written later in a batch, see DonationBatchQueue"""
    donation: Row

@dataclass(frozen=True)
class InsertManyDonations:
    donations: List[Row] = field(default_factory=list)

@dataclass(frozen=True)
class InsertManyPrices:
    prices: List[Row] = field(default_factory=list)

@dataclass(frozen=True)
class IncrementRoundDonationStats:
    chain_id: int
    round_id: str
    amount_in_usd: float

@dataclass(frozen=True)
class IncrementApplicationDonationStats:
    chain_id: int
    round_id: str
    application_id: str
    amount_in_usd: float

DataChange = Union[
    InsertPendingProjectRole,
    DeletePendingProjectRoles,
    InsertProject,
    UpdateProject,
    InsertProjectRole,
    DeleteAllProjectRolesByRole,
    InsertRound,
    UpdateRound,
    InsertApplication,
    UpdateApplication,
    InsertDonation,
    InsertManyDonations,
    InsertManyPrices,
    IncrementRoundDonationStats,
    IncrementApplicationDonationStats,
]
