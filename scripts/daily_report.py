#!/usr/bin/env python3
"""
Cron job script that logs today's profit & loss and the low-stock list.
Add to crontab: 0 22 * * * cd /path/to/app && /path/to/venv/bin/python scripts/daily_report.py

Signs in with REPORT_EMAIL / REPORT_PASSWORD and also purges abandoned carts.
"""

import asyncio
import logging
import sys
import os
from datetime import datetime, timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from retailpos.config import settings
from retailpos.backend import BackendClient, BackendError
from retailpos.currency import format_currency
from retailpos.db import CartStore
from retailpos.reports import fetch_products, fetch_realtime, low_stock_products

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def purge_carts():
    store = CartStore(settings.database_path)
    await store.initialize()
    try:
        cutoff = datetime.utcnow() - timedelta(hours=settings.cart_max_age_hours)
        purged = await store.purge_older_than(cutoff)
        logger.info(f"Purged {purged} stale cart lines")
    finally:
        await store.close()


async def main():
    if not settings.report_email or not settings.report_password:
        logger.error("REPORT_EMAIL and REPORT_PASSWORD must be set")
        sys.exit(2)

    logger.info("Building daily report...")

    async with BackendClient(
        settings.backend_url,
        settings.backend_api_key,
        timeout=settings.request_timeout,
    ) as backend:
        try:
            session = await backend.auth.sign_in_with_password(
                settings.report_email, settings.report_password
            )
            client = backend.with_token(session.access_token)

            summary = await fetch_realtime(client)
            products = await fetch_products(client)

            await client.auth.sign_out()
        except BackendError as e:
            logger.error(f"Report failed: {e}")
            sys.exit(1)

    logger.info(
        f"Today: {summary.transaction_count} sales, "
        f"revenue {format_currency(summary.revenue)}, "
        f"COGS {format_currency(summary.cogs)}, "
        f"expenses {format_currency(summary.expenses)}, "
        f"net profit {format_currency(summary.net_profit)} ({summary.net_margin}%)"
    )

    flagged = low_stock_products(products)
    if flagged:
        logger.warning(f"{len(flagged)} products at or below minimum stock:")
        for product in flagged:
            logger.warning(
                f"  {product.name}: {product.current_stock}/{product.min_stock_threshold} {product.unit}"
            )
    else:
        logger.info("No products below minimum stock")

    await purge_carts()


if __name__ == "__main__":
    asyncio.run(main())
