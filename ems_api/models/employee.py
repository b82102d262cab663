from datetime import datetime
from ems_api.extensions import db

EMPLOYEE_STATUSES = ("active", "inactive", "terminated")

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    profile_id    = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, unique=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)

    employee_code = db.Column(db.String(32), unique=True, nullable=False)
    designation   = db.Column(db.String(120), nullable=True)
    hire_date     = db.Column(db.Date, nullable=True)
    base_salary   = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status        = db.Column(db.String(16), default="active", nullable=False)  # active/inactive/terminated

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_emp_dept_id", "department_id"),
        db.Index("ix_emp_status", "status"),
    )

    profile    = db.relationship("Profile", lazy="joined")
    department = db.relationship("Department", lazy="joined")

    # embeddable relations by table name
    __embeds__ = {"profiles": "profile", "departments": "department"}
