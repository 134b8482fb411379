# backend/users/utils.py
from core.scope import BranchScope


def get_profile(user):
    """Профиль может отсутствовать (например, у суперпользователя из createsuperuser)."""
    return getattr(user, "profile", None) if user else None


def scope_for_user(user) -> BranchScope:
    """
    Область видимости оператора:
      - is_staff или role=admin → все филиалы;
      - иначе только филиал из профиля (без профиля - ничего).
    """
    profile = get_profile(user)
    is_admin = bool(getattr(user, "is_staff", False)) or (
        profile is not None and profile.role == "admin"
    )
    branch_id = profile.branch_id if profile else None
    return BranchScope(branch_id=branch_id, is_admin=is_admin)
