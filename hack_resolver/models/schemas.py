from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Integer, LargeBinary, SmallInteger, String, Uuid
from uuid6 import uuid7
from datetime import datetime


class Base(DeclarativeBase):
    pass


class HackSession(Base):
    __tablename__ = "hack_session"
    __table_args__ = (UniqueConstraint("player_wallet", "hack_nonce"),)
    session_address = Column(String(64), primary_key=True)
    player_wallet = Column(String(64), index=True)
    # u64 does not fit a signed BIGINT, keep its decimal text
    hack_nonce = Column(String(20))
    hack_power = Column(Integer)
    stealth = Column(Integer)
    security_level = Column(Integer)
    detection_chance = Column(Integer)
    heat_level = Column(SmallInteger)
    success_floor = Column(SmallInteger)
    status = Column(SmallInteger, default=0)
    success = Column(Boolean, default=False)
    detected = Column(Boolean, default=False)
    success_roll = Column(SmallInteger, default=0)
    success_chance = Column(SmallInteger, default=0)
    detection_roll = Column(SmallInteger, default=0)
    effective_detection = Column(SmallInteger, default=0)
    damage_seed = Column(LargeBinary(8), default=bytes(8))
    owner_context = Column(String, default="base_layer")
    created_at = Column(DateTime, default=datetime.now)
    resolved_at = Column(DateTime, nullable=True)


class RandomnessRequest(Base):
    __tablename__ = "randomness_request"
    request_id = Column(Uuid, primary_key=True, default=uuid7)
    session_address = Column(String(64), index=True)
    requester = Column(String)
    caller_seed = Column(SmallInteger)
    requested_at = Column(DateTime, default=datetime.now)


class HackDelegation(Base):
    __tablename__ = "hack_delegation"
    delegation_id = Column(Uuid, primary_key=True, default=uuid7)
    session_address = Column(String(64), index=True)
    source_context = Column(String)
    target_context = Column(String)
    snapshot = Column(LargeBinary)
    delegated_at = Column(DateTime, default=datetime.now)
