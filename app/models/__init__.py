from app.models.user import AccountStatus, Role, User  # noqa: F401
from app.models.admin_log import AdminAction, AdminActionLog  # noqa: F401
