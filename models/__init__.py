from .db import db
from .user import User
from .audit_log import AuditLog
from .session import AuthSession
from .ip_rate_limit import IpRateLimit
from .booking import Booking
from .role_upgrade import RoleUpgrade
from .reading_history import ReadingHistory
