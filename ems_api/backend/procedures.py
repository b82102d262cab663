# ems_api/backend/procedures.py
"""Server-side procedures exposed through DataClient.rpc()."""
from ems_api.backend.data import register_procedure
from ems_api.extensions import db
from ems_api.models.profile import Profile


@register_procedure("get_user_role")
def get_user_role(_user_id):
    try:
        uid = int(_user_id)
    except (TypeError, ValueError):
        return None
    profile = db.session.get(Profile, uid)
    return profile.role if profile else None
