"""Full recompute of the donation aggregate columns"""
import logging
from typing import Tuple

from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError

from grants_matching.db import Database
from grants_matching.models.db import Application, Donation, Round

logger = logging.getLogger(__name__)

class StatsRecalculator:
    """
    Rebuilds total USD, donation count and unique donors from the donations table.

    The increment changes keep these columns roughly current; this recompute
    overwrites them and heals any drift. Rounds and applications without
    donations are left untouched.
    """

    def __init__(self, database: Database):
        self.database = database

    def recalculate(self) -> Tuple[int, int]:
        """
        Returns:
            Tuple of (rounds updated, applications updated)
        """
        try:
            with self.database.session() as session:
                round_totals = session.query(
                    Donation.chain_id,
                    Donation.round_id,
                    func.sum(Donation.amount_in_usd),
                    func.count(),
                    func.count(distinct(Donation.donor_address)),
                ).group_by(Donation.chain_id, Donation.round_id).all()

                application_totals = session.query(
                    Donation.chain_id,
                    Donation.round_id,
                    Donation.application_id,
                    func.sum(Donation.amount_in_usd),
                    func.count(),
                    func.count(distinct(Donation.donor_address)),
                ).group_by(Donation.chain_id, Donation.round_id, Donation.application_id).all()

                rounds_updated = 0
                for chain_id, round_id, total, count, unique_donors in round_totals:
                    rounds_updated += session.query(Round).filter_by(
                        chain_id=chain_id, id=round_id
                    ).update({
                        Round.total_amount_donated_in_usd: total or 0.0,
                        Round.total_donations_count: count,
                        Round.unique_donors_count: unique_donors,
                    }, synchronize_session=False)

                applications_updated = 0
                for chain_id, round_id, application_id, total, count, unique_donors in application_totals:
                    applications_updated += session.query(Application).filter_by(
                        chain_id=chain_id, round_id=round_id, id=application_id
                    ).update({
                        Application.total_amount_donated_in_usd: total or 0.0,
                        Application.total_donations_count: count,
                        Application.unique_donors_count: unique_donors,
                    }, synchronize_session=False)

        except SQLAlchemyError as e:
            logger.error(f"Database error recalculating donation stats: {e}")
            raise

        logger.info(f"Recalculated donation stats for {rounds_updated} rounds and {applications_updated} applications")
        return rounds_updated, applications_updated
