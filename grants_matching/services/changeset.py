"""Applies data changes to the persisted tables"""
import logging
from typing import Any, Dict

from sqlalchemy import insert
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from grants_matching.db import Database
from grants_matching.errors import UnknownChangeKindError
from grants_matching.models.changeset import (
    DataChange,
    DeleteAllProjectRolesByRole,
    DeletePendingProjectRoles,
    IncrementApplicationDonationStats,
    IncrementRoundDonationStats,
    InsertApplication,
    InsertDonation,
    InsertManyDonations,
    InsertManyPrices,
    InsertPendingProjectRole,
    InsertProject,
    InsertProjectRole,
    InsertRound,
    UpdateApplication,
    UpdateProject,
    UpdateRound,
)
from grants_matching.models.db import (
    Application, Donation, PendingProjectRole, Price, Project, ProjectRole, Round
)
from grants_matching.services.donation_queue import DonationBatchQueue
from grants_matching.utils.json_encoder import encode_json_with_big_ints

logger = logging.getLogger(__name__)

def _encode_status_snapshots(application: Dict[str, Any]) -> Dict[str, Any]:
    snapshots = application.get('status_snapshots')
    if snapshots is None or isinstance(snapshots, str):
        return application
    return {**application, 'status_snapshots': encode_json_with_big_ints(snapshots)}

class ChangesetApplier:
    """
    Applies one change per call, in its own transaction.

    InsertDonation is not written here: it goes to the donation queue and
    reaches the table when the queue is flushed.
    """

    def __init__(self, database: Database, donation_queue: DonationBatchQueue):
        self.database = database
        self.donation_queue = donation_queue

    def apply_change(self, change: DataChange) -> None:
        if isinstance(change, InsertDonation):
            self.donation_queue.enqueue(change.donation)
            return

        try:
            with self.database.session() as session:
                self._apply(session, change)
        except SQLAlchemyError as e:
            logger.error(f"Database error applying {type(change).__name__}: {e}")
            raise

    def _apply(self, session: Session, change: DataChange) -> None:
        if isinstance(change, InsertPendingProjectRole):
            session.execute(insert(PendingProjectRole), [change.pending_project_role])

        elif isinstance(change, DeletePendingProjectRoles):
            session.query(PendingProjectRole).filter(
                PendingProjectRole.id.in_(change.ids)
            ).delete(synchronize_session=False)

        elif isinstance(change, InsertProject):
            session.execute(insert(Project), [change.project])

        elif isinstance(change, UpdateProject):
            session.query(Project).filter_by(
                chain_id=change.chain_id, id=change.project_id
            ).update(change.project, synchronize_session=False)

        elif isinstance(change, InsertProjectRole):
            session.execute(insert(ProjectRole), [change.project_role])

        elif isinstance(change, DeleteAllProjectRolesByRole):
            query = session.query(ProjectRole).filter_by(
                chain_id=change.chain_id, project_id=change.project_id, role=change.role
            )
            if change.address is not None:
                query = query.filter_by(address=change.address)
            query.delete(synchronize_session=False)

        elif isinstance(change, InsertRound):
            session.execute(insert(Round), [change.round])

        elif isinstance(change, UpdateRound):
            session.query(Round).filter_by(
                chain_id=change.chain_id, id=change.round_id
            ).update(change.round, synchronize_session=False)

        elif isinstance(change, InsertApplication):
            session.execute(insert(Application), [_encode_status_snapshots(change.application)])

        elif isinstance(change, UpdateApplication):
            session.query(Application).filter_by(
                chain_id=change.chain_id, round_id=change.round_id, id=change.application_id
            ).update(_encode_status_snapshots(change.application), synchronize_session=False)

        elif isinstance(change, InsertManyDonations):
            if change.donations:
                session.execute(insert(Donation), list(change.donations))

        elif isinstance(change, InsertManyPrices):
            if change.prices:
                session.execute(insert(Price), list(change.prices))

        elif isinstance(change, IncrementRoundDonationStats):
            session.query(Round).filter_by(
                chain_id=change.chain_id, id=change.round_id
            ).update({
                Round.total_amount_donated_in_usd: Round.total_amount_donated_in_usd + change.amount_in_usd,
                Round.total_donations_count: Round.total_donations_count + 1,
            }, synchronize_session=False)

        elif isinstance(change, IncrementApplicationDonationStats):
            session.query(Application).filter_by(
                chain_id=change.chain_id, round_id=change.round_id, id=change.application_id
            ).update({
                Application.total_amount_donated_in_usd: Application.total_amount_donated_in_usd + change.amount_in_usd,
                Application.total_donations_count: Application.total_donations_count + 1,
            }, synchronize_session=False)

        else:
            raise UnknownChangeKindError(change)
