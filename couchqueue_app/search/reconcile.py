"""
Reconciliation (cache) writer.

Writes provider detail records into the Local Store keyed by
(provider_name, provider_id). Two concurrent searches for the same unseen
title may both reach this point with the same key; the store's upsert is a
single INSERT ... ON CONFLICT statement, so the second write becomes an
update and no duplicate row appears.
"""

import asyncio
import logging
from typing import List, Sequence

from ..metadata.models import ContentRecord

logger = logging.getLogger(__name__)


class CacheWriter:
    """Upserts ContentRecords into the Local Store."""

    def __init__(self, store):
        self.store = store

    async def upsert(self, record: ContentRecord) -> ContentRecord:
        """
        Upsert one record (and its season summary for series).

        Returns:
            The stored record carrying its stable local_id.
            Store failures propagate.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.store.upsert_content, record)

    async def upsert_many(self, records: Sequence[ContentRecord]) -> List[ContentRecord]:
        """
        Upsert records concurrently.

        A failed upsert is logged and that record is left out of the result;
        it never affects sibling writes.
        """
        if not records:
            return []

        results = await asyncio.gather(
            *[self.upsert(record) for record in records],
            return_exceptions=True
        )

        stored: List[ContentRecord] = []
        for record, result in zip(records, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Failed to cache {record.provider_name}:{record.provider_id} "
                    f"({record.title}): {result}"
                )
                continue
            stored.append(result)

        logger.info(f"Cached {len(stored)}/{len(records)} provider records")
        return stored
