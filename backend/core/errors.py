# backend/core/errors.py
from rest_framework import status
from rest_framework.exceptions import APIException


class BillingError(APIException):
    """
    Базовая ошибка движка сессий и биллинга.

    Каждый вид ошибки имеет свой default_code и HTTP-статус, чтобы
    API-слой мог отличать их друг от друга (а не сваливать всё в 500).
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Ошибка обработки запроса."
    default_code = "billing_error"

    def __init__(self, detail=None, code=None, **context):
        super().__init__(detail=detail, code=code)
        self.context = context

    @property
    def kind(self) -> str:
        return self.default_code


class NotFound(BillingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Объект не найден."
    default_code = "not_found"


class Inactive(BillingError):
    """Объект найден, но выключен (is_active=False)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Объект неактивен."
    default_code = "inactive"


class StockInsufficient(BillingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Недостаточно товара на складе."
    default_code = "stock_insufficient"


class InvalidQuantity(BillingError):
    default_detail = "Количество должно быть больше нуля."
    default_code = "invalid_quantity"


class InvalidPrice(BillingError):
    default_detail = "Цена не может быть отрицательной."
    default_code = "invalid_price"


class AccessDenied(BillingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Нет доступа к объекту другого филиала."
    default_code = "access_denied"


class AlreadySettled(BillingError):
    """Бронь уже завершена/отменена или счёт уже закрыт."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Сессия уже закрыта."
    default_code = "already_settled"


class RecipeConflict(BillingError):
    """Дубликат компонента, цикл в рецептуре или компонент чужого филиала."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Конфликт в рецептуре товара."
    default_code = "recipe_conflict"
