from sqlalchemy import Column, Integer, String, Date, DateTime, BigInteger, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from daybook.core.database import Base
from daybook.utils.timezone import utc_now

class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (
        # One entry per user per local calendar day; upserts conflict on this key
        UniqueConstraint("user_id", "entry_date", name="uq_entries_user_id_entry_date"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 10)", name="ck_entries_rating_range"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    entry_date = Column(Date, nullable=False, index=True) # Date key: the user's local calendar day
    text = Column(String, nullable=False)
    rating = Column(Integer, nullable=True) # 1-10, NULL when unrated
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    owner = relationship("User", back_populates="entries")
