# backend/core/exceptions.py
import logging

from rest_framework.views import exception_handler

from .errors import BillingError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Стандартный обработчик DRF + поле "code" для ошибок биллинга,
    чтобы фронт мог различать StockInsufficient / AlreadySettled и т.д.
    """
    response = exception_handler(exc, context)

    if response is not None and isinstance(exc, BillingError):
        response.data = {"detail": str(exc.detail), "code": exc.kind}
        logger.info("Billing error %s: %s", exc.kind, exc.detail)

    return response
