from app.models.stored_file import StoredFile  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
