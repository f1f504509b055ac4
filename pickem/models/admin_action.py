from datetime import datetime, timezone

from pickem import db


class AdminAction(db.Model):
    __tablename__ = "admin_actions"

    id = db.Column(db.Integer, primary_key=True)

    # Who triggered it (free-form; authentication lives outside this service)
    actor = db.Column(db.String(128), nullable=False, default="admin")
    league_id = db.Column(db.String(64), db.ForeignKey("leagues.id"), nullable=False)
    week_id = db.Column(db.String(16), nullable=True)

    # 'recompute_week', 'sync_results', 'simulate_finals', 'set_result', ...
    action_type = db.Column(db.String(50), nullable=False)
    action_description = db.Column(db.String(500), nullable=False)

    # Additional context data (JSON)
    action_metadata = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    league = db.relationship(
        "League", backref=db.backref("admin_actions", cascade="all, delete-orphan")
    )

    __table_args__ = (
        db.Index("idx_admin_action_league", "league_id"),
        db.Index("idx_admin_action_type", "action_type"),
        db.Index("idx_admin_action_created", "created_at"),
    )

    def __repr__(self):
        return f"<AdminAction {self.action_type} by {self.actor} in league {self.league_id}>"

    @staticmethod
    def log_action(
        league_id,
        action_type,
        description,
        actor=None,
        week_id=None,
        action_metadata=None,
        session=None,
    ):
        """Log an admin action (added to the session, not committed)"""
        action = AdminAction(
            actor=actor or "admin",
            league_id=league_id,
            week_id=week_id,
            action_type=action_type,
            action_description=description,
            action_metadata=action_metadata or {},
        )

        (session or db.session).add(action)
        return action

    @staticmethod
    def log_result_entry(actor, league_id, week_id, game, session=None):
        """Convenience method for logging a manual result"""
        if game.final_score_home is not None and game.final_score_away is not None:
            description = (
                f"Set result {game.away} {game.final_score_away} @ "
                f"{game.home} {game.final_score_home}"
            )
            action_type = "set_result"
        else:
            description = f"Set winner of {game.away} @ {game.home} to {game.winner}"
            action_type = "set_winner"

        return AdminAction.log_action(
            league_id=league_id,
            action_type=action_type,
            description=description,
            actor=actor,
            week_id=week_id,
            action_metadata={
                "event_key": game.event_key,
                "final_score_home": game.final_score_home,
                "final_score_away": game.final_score_away,
                "winner": game.winner,
            },
            session=session,
        )

    def to_dict(self):
        """Convert action to dictionary for API responses"""
        return {
            "id": self.id,
            "actor": self.actor,
            "league_id": self.league_id,
            "week_id": self.week_id,
            "action_type": self.action_type,
            "action_description": self.action_description,
            "action_metadata": self.action_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
