import logging
from datetime import datetime, timezone

from sqlalchemy.orm import validates

from pickem import db

logger = logging.getLogger(__name__)

PICK_SIDES = ("home", "away")


class UserPick(db.Model):
    __tablename__ = "user_picks"

    id = db.Column(db.Integer, primary_key=True)
    week_pk = db.Column(db.Integer, db.ForeignKey("weeks.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)

    # eventKey -> "home" | "away"
    selections = db.Column(db.JSON, nullable=False, default=dict)

    # Predicted home-minus-away differential for the tiebreaker game
    tiebreaker = db.Column(db.Integer)

    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("week_pk", "user_id", name="unique_week_user_pick"),
    )

    def __repr__(self):
        return f"<UserPick user_id={self.user_id} week={self.week_pk}>"

    @validates("selections")
    def validate_selections(self, key, value):
        value = value or {}
        if not isinstance(value, dict):
            raise ValueError("Selections must be a mapping of event key to side")
        for event_key, side in value.items():
            if side not in PICK_SIDES:
                raise ValueError(f"Invalid pick side for {event_key!r}: {side!r}")
        return dict(value)

    def is_well_formed(self):
        """Check the stored document before it reaches scoring

        Rows written outside the model (raw SQL, old migrations) can bypass the
        validators, so the read side checks again.
        """
        if not isinstance(self.selections, dict):
            return False
        if any(
            not isinstance(event_key, str) or side not in PICK_SIDES
            for event_key, side in self.selections.items()
        ):
            return False
        if self.tiebreaker is not None and (
            isinstance(self.tiebreaker, bool) or not isinstance(self.tiebreaker, int)
        ):
            return False
        return True

    def is_complete(self, games_per_week=6):
        """Complete iff exactly games_per_week selections and a numeric tiebreaker"""
        return (
            isinstance(self.selections, dict)
            and len(self.selections) == games_per_week
            and self.tiebreaker is not None
        )

    def to_dict(self):
        """Convert pick to dictionary for API responses"""
        return {
            "user_id": self.user_id,
            "selections": dict(self.selections or {}),
            "tiebreaker": self.tiebreaker,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
