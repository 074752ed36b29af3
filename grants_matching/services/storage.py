"""Read operations over the persisted round state"""
import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from grants_matching.db import Database
from grants_matching.models.db import (
    Application, Donation, PendingProjectRole, Price, Project, Round
)
from grants_matching.services.round_token_cache import RoundTokenCache

logger = logging.getLogger(__name__)

BlockNumber = Union[int, str]

class StorageService:
    """Handles all read queries; rows come back detached from their session"""

    def __init__(self, database: Database, token_cache_size: int = 500):
        self.database = database
        self.round_token_cache = RoundTokenCache(self._load_round_match_token_address, token_cache_size)

    def get_pending_project_roles_by_role(self, chain_id: int, role: str) -> List[PendingProjectRole]:
        with self.database.session() as session:
            return session.query(PendingProjectRole).filter_by(chain_id=chain_id, role=role).all()

    def get_project_by_id(self, project_id: str) -> Optional[Project]:
        with self.database.session() as session:
            return session.query(Project).filter_by(id=project_id).first()

    def get_round_by_id(self, chain_id: int, round_id: str) -> Optional[Round]:
        with self.database.session() as session:
            return session.query(Round).filter_by(chain_id=chain_id, id=round_id).first()

    def _load_round_match_token_address(self, chain_id: int, round_id: str) -> Optional[str]:
        try:
            with self.database.session() as session:
                row = session.query(Round.match_token_address).filter_by(
                    chain_id=chain_id, id=round_id
                ).first()
        except SQLAlchemyError as e:
            logger.error(f"Database error loading match token of round {round_id}: {e}")
            raise
        return row[0] if row is not None else None

    def get_round_match_token_address_by_id(self, chain_id: int, round_id: str) -> Optional[str]:
        return self.round_token_cache.get(chain_id, round_id)

    def get_all_chain_rounds(self, chain_id: int) -> List[Round]:
        with self.database.session() as session:
            return session.query(Round).filter_by(chain_id=chain_id).all()

    def get_all_round_applications(self, chain_id: int, round_id: str) -> List[Application]:
        with self.database.session() as session:
            return session.query(Application).filter_by(chain_id=chain_id, round_id=round_id).all()

    def get_all_round_donations(self, chain_id: int, round_id: str) -> List[Donation]:
        with self.database.session() as session:
            return session.query(Donation).filter_by(chain_id=chain_id, round_id=round_id).all()

    def get_application_by_id(self, chain_id: int, round_id: str, application_id: str) -> Optional[Application]:
        with self.database.session() as session:
            return session.query(Application).filter_by(
                chain_id=chain_id, round_id=round_id, id=application_id
            ).first()

    def get_latest_price_timestamp_for_chain(self, chain_id: int) -> Optional[datetime]:
        with self.database.session() as session:
            row = session.query(Price.timestamp).filter_by(
                chain_id=chain_id
            ).order_by(Price.timestamp.desc()).first()
        return row[0] if row is not None else None

    def get_token_price_by_block_number(
            self,
            chain_id: int,
            token_address: str,
            block_number: BlockNumber = "latest"
    ) -> Optional[Price]:
        """Latest price of a token at or before block_number, or the newest one for "latest" """
        with self.database.session() as session:
            query = session.query(Price).filter_by(chain_id=chain_id, token_address=token_address)
            if block_number != "latest":
                query = query.filter(Price.block_number <= int(block_number))
            return query.order_by(Price.block_number.desc()).first()

    def get_all_chain_prices(self, chain_id: int) -> List[Price]:
        with self.database.session() as session:
            return session.query(Price).filter_by(chain_id=chain_id).order_by(Price.block_number.asc()).all()

    def get_all_chain_projects(self, chain_id: int) -> List[Project]:
        with self.database.session() as session:
            return session.query(Project).filter_by(chain_id=chain_id).all()
