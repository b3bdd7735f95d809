# Standard library imports
import enum
from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional

# Third-party imports
import sqlalchemy as sa
import sqlalchemy.orm as so
from flask_login import UserMixin
from sqlalchemy import Table, Column, Integer, ForeignKey

# Local application imports
from turfbook import db, login
from turfbook.identity import Role


class BookingStatus(str, enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'


class PaymentStatus(str, enum.Enum):
    UNPAID = 'unpaid'
    PAID = 'paid'
    REFUNDED = 'refunded'


class GameStatus(str, enum.Enum):
    OPEN = 'open'
    FULL = 'full'
    CANCELLED = 'cancelled'


class JoinRequestStatus(str, enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


# Association table for the game roster (organizer included)
game_participants = Table(
    'game_participants',
    db.Model.metadata,
    Column('game_id', Integer, ForeignKey('games.id', ondelete='CASCADE'), primary_key=True),
    Column('member_id', Integer, ForeignKey('member.id', ondelete='CASCADE'), primary_key=True)
)


class Member(UserMixin, db.Model):
    __tablename__ = 'member'
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    username: so.Mapped[str] = so.mapped_column(sa.String(64), index=True,
                                                unique=True)
    email: so.Mapped[str] = so.mapped_column(sa.String(120), index=True,
                                             unique=True)
    firstname: so.Mapped[str] = so.mapped_column(sa.String(64), index=True)
    lastname: so.Mapped[str] = so.mapped_column(sa.String(64), index=True)
    role: so.Mapped[str] = so.mapped_column(
        sa.String(16), default=Role.PLAYER.value, nullable=False
    )
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    # Games this member plays in
    games: so.Mapped[list['Game']] = so.relationship('Game', secondary=game_participants, back_populates='participants')

    def __repr__(self):
        return '<Member {}>'.format(self.username)

    @property
    def full_name(self):
        return f"{self.firstname} {self.lastname}"


@login.user_loader
def load_user(id):
    return db.session.get(Member, int(id))


class Turf(db.Model):
    __tablename__ = 'turfs'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    owner_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(128), nullable=False)
    location: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False, default='')
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    price_per_hour: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(10, 2), nullable=False)
    open_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    close_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    sports: so.Mapped[list] = so.mapped_column(sa.JSON, nullable=False, default=list)
    amenities: so.Mapped[list] = so.mapped_column(sa.JSON, nullable=False, default=list)
    is_available: so.Mapped[bool] = so.mapped_column(sa.Boolean, nullable=False, default=True)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    owner: so.Mapped['Member'] = so.relationship('Member')
    bookings: so.Mapped[list['Booking']] = so.relationship('Booking', back_populates='turf')

    def __repr__(self):
        return f"<Turf id={self.id}, name='{self.name}', owner_id={self.owner_id}, available={self.is_available}>"

    def supports(self, sport):
        return sport in (self.sports or [])

    def is_within_operating_hours(self, start_time, end_time):
        """Check that [start_time, end_time) lies inside [open_time, close_time)"""
        return self.open_time <= start_time and end_time <= self.close_time

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'name': self.name,
            'location': self.location,
            'description': self.description,
            'price_per_hour': str(self.price_per_hour),
            'open_time': self.open_time.strftime('%H:%M'),
            'close_time': self.close_time.strftime('%H:%M'),
            'sports': list(self.sports or []),
            'amenities': list(self.amenities or []),
            'is_available': self.is_available,
        }


class Booking(db.Model):
    __tablename__ = 'bookings'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    turf_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('turfs.id'), nullable=False, index=True)
    requester_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    booking_date: so.Mapped[date] = so.mapped_column(sa.Date, nullable=False, index=True)
    start_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    end_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    amount: so.Mapped[Decimal] = so.mapped_column(sa.Numeric(10, 2), nullable=False)
    note: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    status: so.Mapped[str] = so.mapped_column(sa.String(16), default=BookingStatus.PENDING.value, nullable=False)
    payment_status: so.Mapped[str] = so.mapped_column(sa.String(16), default=PaymentStatus.UNPAID.value, nullable=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    turf: so.Mapped['Turf'] = so.relationship('Turf', back_populates='bookings')
    requester: so.Mapped['Member'] = so.relationship('Member')

    def __repr__(self):
        return (f"<Booking id={self.id}, turf_id={self.turf_id}, date={self.booking_date}, "
                f"{self.start_time}-{self.end_time}, status={self.status}>")

    def starts_at(self):
        return datetime.combine(self.booking_date, self.start_time)

    def to_dict(self):
        return {
            'id': self.id,
            'turf_id': self.turf_id,
            'turf_name': self.turf.name if self.turf else None,
            'requester_id': self.requester_id,
            'booking_date': self.booking_date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'amount': str(self.amount),
            'note': self.note,
            'status': self.status,
            'payment_status': self.payment_status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Game(db.Model):
    __tablename__ = 'games'

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    organizer_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    sport: so.Mapped[str] = so.mapped_column(sa.String(32), nullable=False)
    game_date: so.Mapped[date] = so.mapped_column(sa.Date, nullable=False, index=True)
    start_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    end_time: so.Mapped[time] = so.mapped_column(sa.Time, nullable=False)
    turf_name: so.Mapped[str] = so.mapped_column(sa.String(128), nullable=False)  # Free text, not a Turf reference
    turf_location: so.Mapped[str] = so.mapped_column(sa.String(255), nullable=False)
    max_players: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False)
    required_players: so.Mapped[int] = so.mapped_column(sa.Integer, nullable=False, default=0)
    per_head_contribution: so.Mapped[Optional[Decimal]] = so.mapped_column(sa.Numeric(10, 2), nullable=True)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    status: so.Mapped[str] = so.mapped_column(sa.String(16), default=GameStatus.OPEN.value, nullable=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    organizer: so.Mapped['Member'] = so.relationship('Member', foreign_keys=[organizer_id])
    participants: so.Mapped[list['Member']] = so.relationship('Member', secondary=game_participants, back_populates='games')
    join_requests: so.Mapped[list['JoinRequest']] = so.relationship('JoinRequest', back_populates='game', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Game id={self.id}, sport='{self.sport}', date={self.game_date}, players={len(self.participants)}/{self.max_players}, status={self.status}>"

    def has_participant(self, member_id):
        return any(member.id == member_id for member in self.participants)

    def is_at_capacity(self):
        return len(self.participants) >= self.max_players

    def remaining_spots(self):
        return max(self.max_players - len(self.participants), 0)

    def to_dict(self):
        return {
            'id': self.id,
            'organizer_id': self.organizer_id,
            'sport': self.sport,
            'game_date': self.game_date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'turf_name': self.turf_name,
            'turf_location': self.turf_location,
            'max_players': self.max_players,
            'required_players': self.required_players,
            'per_head_contribution': str(self.per_head_contribution) if self.per_head_contribution is not None else None,
            'description': self.description,
            'status': self.status,
            'participant_ids': sorted(member.id for member in self.participants),
            'remaining_spots': self.remaining_spots(),
        }


class JoinRequest(db.Model):
    __tablename__ = 'join_requests'
    # At most one pending request per member per game
    __table_args__ = (
        sa.Index(
            'uq_join_requests_pending', 'game_id', 'requester_id', unique=True,
            sqlite_where=sa.text("status = 'pending'"),
            postgresql_where=sa.text("status = 'pending'"),
        ),
    )

    id: so.Mapped[int] = so.mapped_column(sa.Integer, primary_key=True)
    game_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('games.id'), nullable=False, index=True)
    requester_id: so.Mapped[int] = so.mapped_column(sa.Integer, sa.ForeignKey('member.id'), nullable=False, index=True)
    note: so.Mapped[Optional[str]] = so.mapped_column(sa.Text, nullable=True)
    status: so.Mapped[str] = so.mapped_column(sa.String(16), default=JoinRequestStatus.PENDING.value, nullable=False)
    created_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)
    updated_at: so.Mapped[datetime] = so.mapped_column(sa.DateTime, default=datetime.utcnow, nullable=False)

    game: so.Mapped['Game'] = so.relationship('Game', back_populates='join_requests')
    requester: so.Mapped['Member'] = so.relationship('Member')

    def __repr__(self):
        return f"<JoinRequest id={self.id}, game_id={self.game_id}, requester_id={self.requester_id}, status={self.status}>"

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'requester_id': self.requester_id,
            'requester_name': self.requester.full_name if self.requester else None,
            'note': self.note,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
