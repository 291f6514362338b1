from datetime import datetime
from commission_api.extensions import db

CHANGE_CREATED        = "CREATED"
CHANGE_UPDATED        = "UPDATED"
CHANGE_STATUS_CHANGED = "STATUS_CHANGED"
CHANGE_TEAM_CHANGED   = "TEAM_CHANGED"
CHANGE_CLOSED         = "CLOSED"
CHANGE_REOPENED       = "REOPENED"
CHANGE_TYPES = (CHANGE_CREATED, CHANGE_UPDATED, CHANGE_STATUS_CHANGED,
                CHANGE_TEAM_CHANGED, CHANGE_CLOSED, CHANGE_REOPENED)


class ProjectHistory(db.Model):
    """Append-only audit entry for a project."""
    __tablename__ = "project_history"

    id          = db.Column(db.Integer, primary_key=True)
    project_id  = db.Column(db.Integer, nullable=False, index=True)
    change_type = db.Column(db.String(20), nullable=False)
    changed_by  = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changes     = db.Column(db.JSON, nullable=False, default=list)  # [{field, old_value, new_value, description}]
    snapshot    = db.Column(db.JSON, nullable=False, default=dict)  # names, not ids
    notes       = db.Column(db.Text, nullable=True)
    created_at  = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_history_project_created", "project_id", "created_at"),
        db.Index("ix_history_change_type", "change_type"),
    )

    actor = db.relationship("User", lazy="joined")
