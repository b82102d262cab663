from datetime import datetime
from ems_api.extensions import db

LEAVE_TYPES = ("sick", "casual", "vacation", "personal")

class LeaveRequest(db.Model):
    __tablename__ = "leave_requests"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type  = db.Column(db.String(20), nullable=False)
    start_date  = db.Column(db.Date, nullable=False)
    end_date    = db.Column(db.Date, nullable=False)
    reason      = db.Column(db.Text)
    status      = db.Column(db.String(20), nullable=False, default="pending")  # pending|approved|rejected

    reviewed_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    employee = db.relationship("Employee", backref="leave_requests")
    reviewer = db.relationship("Profile", foreign_keys=[reviewed_by])

    __embeds__ = {
        "employees": "employee",
        "profiles": "reviewer",
        "leave_requests_reviewed_by_fkey": "reviewer",
    }

    @property
    def total_days(self):
        return (self.end_date - self.start_date).days + 1
