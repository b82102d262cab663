from datetime import datetime
from ems_api.extensions import db

ROLES = ("admin", "hr", "employee")

class Profile(db.Model):
    __tablename__ = "profiles"

    # one profile per principal, sharing its id
    id         = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=True)
    email      = db.Column(db.String(255), unique=True, nullable=False)
    phone      = db.Column(db.String(20), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    role       = db.Column(db.String(16), nullable=False, default="employee")  # admin/hr/employee

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("role IN ('admin','hr','employee')", name="ck_profile_role"),
    )

    user = db.relationship("User", back_populates="profile")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()
