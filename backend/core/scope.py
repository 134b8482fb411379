# backend/core/scope.py
from .errors import AccessDenied


class BranchScope:
    """
    Область видимости оператора: филиал + признак администратора.

    Администратор может менять объекты любого филиала,
    сотрудник/менеджер - только своего.
    """

    def __init__(self, branch_id=None, is_admin=False):
        self.branch_id = branch_id
        self.is_admin = is_admin

    def allows(self, branch_id) -> bool:
        if self.is_admin:
            return True
        return self.branch_id is not None and self.branch_id == branch_id

    def check(self, entity):
        branch_id = getattr(entity, "branch_id", None)
        if not self.allows(branch_id):
            raise AccessDenied(
                f"Объект #{entity.pk} относится к другому филиалу.",
                branch_id=branch_id,
            )
        return entity

    def __repr__(self):
        return f"BranchScope(branch_id={self.branch_id!r}, is_admin={self.is_admin!r})"


def check_scope(scope, entity):
    """Проверка филиала, если scope передан (None - системный вызов без ограничений)."""
    if scope is not None:
        scope.check(entity)
    return entity
