from django.contrib.auth import get_user_model

# Canonical role names
ROLE_USER = "user"
ROLE_VENDOR = "vendor"
ROLE_ADMIN = "admin"


def _fetch_user_from_db(user):
    """Fetch a fresh copy of the user from the DB with only the fields we need.

    Returns None if the user is not authenticated.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    User = get_user_model()
    return User.objects.only("id", "role", "is_superuser").filter(pk=getattr(user, "pk", None)).first()


def is_admin(user) -> bool:
    """Consistent admin check across the codebase, verified against the database."""
    db_user = _fetch_user_from_db(user)
    if not db_user:
        return False
    return bool(getattr(db_user, "is_superuser", False) or getattr(db_user, "role", None) == ROLE_ADMIN)
