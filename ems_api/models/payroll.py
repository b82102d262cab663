from datetime import datetime
from ems_api.extensions import db

PAYROLL_STATUSES = ("draft", "approved", "paid")

class Payroll(db.Model):
    __tablename__ = "payroll"

    id = db.Column(db.Integer, primary_key=True)
    employee_id  = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    month        = db.Column(db.SmallInteger, nullable=False)
    year         = db.Column(db.SmallInteger, nullable=False)
    base_salary  = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    allowances   = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    deductions   = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_salary   = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    working_days = db.Column(db.Integer, nullable=False, default=0)
    present_days = db.Column(db.Numeric(5, 1), nullable=False, default=0)
    status       = db.Column(db.String(16), nullable=False, default="draft")  # draft|approved|paid

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "month", "year", name="uq_payroll_employee_period"),
        db.CheckConstraint("month BETWEEN 1 AND 12", name="ck_payroll_month"),
    )

    employee = db.relationship("Employee")

    __embeds__ = {"employees": "employee"}
