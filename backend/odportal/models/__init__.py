from odportal.models.activity_log import ActivityLog  # noqa: F401
from odportal.models.od_request import ODRequest, ODStatus  # noqa: F401
from odportal.models.user import User, UserRole  # noqa: F401
