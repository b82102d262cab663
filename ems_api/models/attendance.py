from datetime import datetime
from ems_api.extensions import db

ATTENDANCE_STATUSES = ("present", "absent", "half_day", "leave")

class Attendance(db.Model):
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    employee_id    = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date           = db.Column(db.Date, nullable=False)
    status         = db.Column(db.String(16), nullable=False)
    check_in_time  = db.Column(db.Time, nullable=True)
    check_out_time = db.Column(db.Time, nullable=True)
    notes          = db.Column(db.Text)
    created_at     = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # upsert conflict target
    __table_args__ = (
        db.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    employee = db.relationship("Employee")

    __embeds__ = {"employees": "employee"}
