from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Facilities(Base):
    __tablename__ = 'facilities'

    owner_id = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    opening_hours = Column(Text, nullable=False, server_default=text("'{}'"))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    courts = relationship('Courts', back_populates='facility')
    booking_policies = relationship('BookingPolicies', back_populates='facility')


class Courts(Base):
    __tablename__ = 'courts'

    facility_id = Column(ForeignKey('facilities.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    price_per_hour = Column(Float, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    facility = relationship('Facilities', back_populates='courts')
    availability_rules = relationship('AvailabilityRules', back_populates='court')
    blocked_ranges = relationship('BlockedRanges', back_populates='court')
    reservations = relationship('Reservations', back_populates='court')


class AvailabilityRules(Base):
    __tablename__ = 'availability_rules'
    __table_args__ = (
        UniqueConstraint('court_id', 'day_of_week', 'start_time', 'end_time'),
        CheckConstraint('day_of_week BETWEEN 0 AND 6'),
        CheckConstraint('start_time >= 0 AND end_time <= 1439 AND start_time < end_time'),
        Index('ix_availability_rules_court_day', 'court_id', 'day_of_week', 'is_active'),
    )

    court_id = Column(ForeignKey('courts.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Integer, nullable=False)   # minutes since midnight
    end_time = Column(Integer, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    price_per_hour_override = Column(Float)
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    court = relationship('Courts', back_populates='availability_rules')


class BlockedRanges(Base):
    __tablename__ = 'blocked_ranges'
    __table_args__ = (
        CheckConstraint("block_type IN ('one_time', 'recurring', 'date_range')"),
        Index('ix_blocked_ranges_court', 'court_id', 'is_active'),
        Index('ix_blocked_ranges_facility', 'facility_id', 'is_active'),
    )

    facility_id = Column(ForeignKey('facilities.id', ondelete='CASCADE'), nullable=False)
    block_type = Column(Text, nullable=False, server_default=text("'one_time'"))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    court_id = Column(ForeignKey('courts.id', ondelete='CASCADE'))  # NULL = whole facility
    start_date = Column(Date)
    end_date = Column(Date)
    start_time = Column(Integer)
    end_time = Column(Integer)
    day_of_week = Column(Integer)
    reason = Column(Text)
    created_by = Column(Integer)
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    court = relationship('Courts', back_populates='blocked_ranges')


class BookingPolicies(Base):
    __tablename__ = 'booking_policies'
    __table_args__ = (
        UniqueConstraint('facility_id', 'court_id'),
    )

    facility_id = Column(ForeignKey('facilities.id', ondelete='CASCADE'), nullable=False)
    id = Column(Integer, primary_key=True)
    court_id = Column(ForeignKey('courts.id', ondelete='CASCADE'))  # NULL = facility default
    max_advance_booking_days = Column(Integer)
    min_booking_duration_minutes = Column(Integer)
    max_booking_duration_minutes = Column(Integer)
    min_advance_notice_minutes = Column(Integer)
    pending_expiration_hours = Column(Integer)

    facility = relationship('Facilities', back_populates='booking_policies')


class Reservations(Base):
    __tablename__ = 'reservations'
    __table_args__ = (
        CheckConstraint('start_time < end_time'),
        Index('ix_reservations_court_date_status', 'court_id', 'booking_date', 'status'),
        Index('ix_reservations_pending_expiry', 'status', 'expires_at'),
    )

    court_id = Column(ForeignKey('courts.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, nullable=False)
    booking_date = Column(Date, nullable=False)
    start_time = Column(Integer, nullable=False)
    end_time = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    id = Column(Integer, primary_key=True)
    price = Column(Float)
    expires_at = Column(DateTime)  # set while pending
    rejection_reason = Column(Text)
    cancellation_reason = Column(Text)
    decided_by = Column(Integer)

    court = relationship('Courts', back_populates='reservations')
