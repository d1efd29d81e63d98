from app.models.notification import Notification
from app.models.ticket import Ticket
from app.models.user import User, UserSession

__all__ = ["Ticket", "Notification", "User", "UserSession"]
