"""SQLAlchemy models for indexed round, application and donation state"""
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, BigInteger, JSON, Text, Numeric, Index
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from grants_matching.utils.json_encoder import decode_json_with_big_ints

Base = declarative_base()

class TokenAmount(TypeDecorator):
    """
    Unbounded integer token amount.

    Stored as NUMERIC(78, 0) on PostgreSQL, which fits any uint256, and as
    text on other dialects. Always loaded back as a Python int.
    """
    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(Numeric(78, 0))
        return dialect.type_descriptor(String(78))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == 'postgresql':
            return Decimal(int(value))
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)

class Project(Base):
    __tablename__ = 'projects'

    id = Column(String, primary_key=True)
    chain_id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, default='')
    nonce = Column(TokenAmount, nullable=True)
    anchor_address = Column(String, nullable=True)
    project_number = Column(Integer, nullable=True)
    registry_address = Column(String, nullable=False, default='')
    metadata_cid = Column(String, nullable=True)
    project_metadata = Column('metadata', JSON, nullable=True)
    created_by_address = Column(String, nullable=False, default='')
    created_at_block = Column(BigInteger, nullable=False, default=0)
    updated_at_block = Column(BigInteger, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    project_type = Column(String, nullable=False, default='canonical')

class PendingProjectRole(Base):
    """Role granted on-chain before the project it belongs to was indexed"""
    __tablename__ = 'pending_project_roles'

    id = Column(Integer, primary_key=True, autoincrement=True)
    chain_id = Column(Integer, nullable=False)
    role = Column(String, nullable=False)
    address = Column(String, nullable=False)
    created_at_block = Column(BigInteger, nullable=False, default=0)

class ProjectRole(Base):
    __tablename__ = 'project_roles'

    chain_id = Column(Integer, primary_key=True)
    project_id = Column(String, primary_key=True)
    address = Column(String, primary_key=True)
    role = Column(String, primary_key=True)
    created_at_block = Column(BigInteger, nullable=False, default=0)

class Round(Base):
    """
    A funding round. Match token is immutable once the round is created;
    only the donation aggregate columns change afterwards.
    """
    __tablename__ = 'rounds'

    id = Column(String, primary_key=True)
    chain_id = Column(Integer, primary_key=True)
    tags = Column(JSON, nullable=False, default=list)
    match_amount = Column(TokenAmount, nullable=False, default=0)
    match_token_address = Column(String, nullable=False)
    match_amount_in_usd = Column(Float, nullable=False, default=0.0)
    application_metadata_cid = Column(String, nullable=True)
    application_metadata = Column(JSON, nullable=True)
    round_metadata_cid = Column(String, nullable=True)
    round_metadata = Column(JSON, nullable=True)
    applications_start_time = Column(DateTime(timezone=True), nullable=True)
    applications_end_time = Column(DateTime(timezone=True), nullable=True)
    donations_start_time = Column(DateTime(timezone=True), nullable=True)
    donations_end_time = Column(DateTime(timezone=True), nullable=True)
    created_by_address = Column(String, nullable=False, default='')
    created_at_block = Column(BigInteger, nullable=False, default=0)
    updated_at_block = Column(BigInteger, nullable=False, default=0)
    manager_role = Column(String, nullable=True)
    admin_role = Column(String, nullable=True)
    strategy_address = Column(String, nullable=True)
    strategy_id = Column(String, nullable=True)
    strategy_name = Column(String, nullable=True)
    project_id = Column(String, nullable=True)
    total_amount_donated_in_usd = Column(Float, nullable=False, default=0.0)
    total_donations_count = Column(Integer, nullable=False, default=0)
    unique_donors_count = Column(Integer, nullable=False, default=0)

class Application(Base):
    __tablename__ = 'applications'

    id = Column(String, primary_key=True)
    chain_id = Column(Integer, primary_key=True)
    round_id = Column(String, primary_key=True)
    project_id = Column(String, nullable=False)
    anchor_address = Column(String, nullable=True)
    status = Column(String, nullable=False, default='PENDING')
    # JSON with block numbers encoded by encode_json_with_big_ints
    status_snapshots = Column(Text, nullable=False, default='[]')
    distribution_transaction = Column(String, nullable=True)
    metadata_cid = Column(String, nullable=True)
    application_metadata = Column('metadata', JSON, nullable=True)
    created_by_address = Column(String, nullable=False, default='')
    created_at_block = Column(BigInteger, nullable=False, default=0)
    status_updated_at_block = Column(BigInteger, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    total_amount_donated_in_usd = Column(Float, nullable=False, default=0.0)
    total_donations_count = Column(Integer, nullable=False, default=0)
    unique_donors_count = Column(Integer, nullable=False, default=0)

    @property
    def snapshots(self) -> list:
        """Status snapshots with their block numbers decoded back to int"""
        return decode_json_with_big_ints(self.status_snapshots)

class Donation(Base):
    """Append-mostly fact table, source of truth for the aggregate stats"""
    __tablename__ = 'donations'

    id = Column(String, primary_key=True)
    chain_id = Column(Integer, nullable=False)
    round_id = Column(String, nullable=False)
    application_id = Column(String, nullable=False)
    donor_address = Column(String, nullable=False)
    recipient_address = Column(String, nullable=False, default='')
    project_id = Column(String, nullable=False, default='')
    transaction_hash = Column(String, nullable=False, default='')
    block_number = Column(BigInteger, nullable=False, default=0)
    token_address = Column(String, nullable=False, default='')
    timestamp = Column(DateTime(timezone=True), nullable=True)
    amount = Column(TokenAmount, nullable=False, default=0)
    amount_in_usd = Column(Float, nullable=False, default=0.0)
    amount_in_round_match_token = Column(TokenAmount, nullable=False, default=0)

    __table_args__ = (
        Index('ix_donations_chain_round', 'chain_id', 'round_id'),
    )

class Price(Base):
    """Append-only USD price of a token at a block"""
    __tablename__ = 'prices'

    id = Column(Integer, primary_key=True, autoincrement=True)
    chain_id = Column(Integer, nullable=False)
    token_address = Column(String, nullable=False)
    price_in_usd = Column(Float, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    block_number = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index('ix_prices_chain_token_block', 'chain_id', 'token_address', 'block_number'),
    )
