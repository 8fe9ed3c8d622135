"""Periodic tasks of the orders module."""

import structlog
from celery import shared_task

from modules.orders.repositories import OrderDjangoRepository

logger = structlog.get_logger(__name__)

SAMPLE_SIZE = 50


@shared_task(name="orders.report_fee_reconciliation_backlog")
def report_fee_reconciliation_backlog():
    """Log the orders created with an unresolved (zero) delivery fee.

    Those orders need a manual fee once the missing colony coordinates or
    tariff are fixed.
    """
    backlog = OrderDjangoRepository().list_flagged_for_reconciliation()
    count = backlog.count()
    sample = list(backlog.values_list("order_number", flat=True)[:SAMPLE_SIZE])

    if count:
        logger.warning("orders.fee_reconciliation_backlog", count=count, sample=sample)
    else:
        logger.info("orders.fee_reconciliation_backlog", count=0)
    return {"count": count, "sample": sample}
