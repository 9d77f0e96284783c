from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Rooms(Base):
    __tablename__ = 'rooms'

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    capacity = Column(Integer, nullable=False, server_default=text('0'))
    notes = Column(Text)
    location = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'Available'"))
    # seconds since local midnight
    start_time = Column(Integer, nullable=False, server_default=text('28800'))
    end_time = Column(Integer, nullable=False, server_default=text('64800'))
    max_meeting_hours = Column(Float)
    tags = Column(Text, nullable=False, server_default=text("'[]'"))
    image_url = Column(Text)

    bookings = relationship('Bookings', back_populates='room')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_room_start', 'room_id', 'start_time'),
        Index('ix_bookings_user', 'user_id'),
    )

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False)
    user_label = Column(Text, nullable=False, server_default=text("''"))
    room_id = Column(ForeignKey('rooms.id'), nullable=False)
    # snapshot of the room at creation time
    room_name = Column(Text)
    room_location = Column(Text)
    # UTC ISO-8601, fixed width so string comparison orders correctly
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    note = Column(Text, nullable=False, server_default=text("''"))
    status = Column(Text, nullable=False, server_default=text("'Confirmed'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    room = relationship('Rooms', back_populates='bookings')
