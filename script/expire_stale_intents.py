#!/usr/bin/env python3
"""
Expiry Reaper
Expire pending purchase intents past their deadline and release their capacity

Run from cron, e.g. every minute:
    * * * * * cd /app && python script/expire_stale_intents.py --limit 500

Notes:
- Safe to run alongside the API: every expiry is a compare-and-swap on status
- Reads still expire overdue intents lazily, the reaper only keeps capacity honest
  for checkouts nobody looks at again
"""

import argparse
import asyncio

from boxoffice.platform.config.core_setting import settings
from boxoffice.platform.database.orm_db_setting import Database
from boxoffice.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from boxoffice.platform.logging.loguru_io import Logger
from boxoffice.service.checkout.app.command.expire_stale_intents_use_case import (
    ExpireStaleIntentsUseCase,
)
from boxoffice.service.checkout.app.command.release_purchase_intent_use_case import (
    ReleasePurchaseIntentUseCase,
)


async def main(*, limit: int, max_batches: int) -> None:
    database = Database()

    def uow_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory=database.session)

    use_case = ExpireStaleIntentsUseCase(
        uow_factory=uow_factory,
        release_use_case=ReleasePurchaseIntentUseCase(uow_factory=uow_factory),
        settings=settings,
    )

    try:
        total = await use_case.drain(limit=limit, max_batches=max_batches)
    finally:
        await database.dispose()

    Logger.base.info(f'🧹 [REAPER] Done, {total} intents expired')


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Expire overdue pending purchase intents')
    parser.add_argument('--limit', type=int, default=settings.EXPIRE_BATCH_SIZE)
    parser.add_argument('--max-batches', type=int, default=10)
    args = parser.parse_args()

    asyncio.run(main(limit=args.limit, max_batches=args.max_batches))
