# backend/focus_challenge/db/seed_indexes.py
"""
Idempotent index seeding for Focus Challenge.

- Uses get_collection() (no direct client here).
- Matching by KEYS: if an index with same keys exists, keep it when options match.
- If options differ (unique / partialFilterExpression), drop & recreate.
- Only meaningful for the Mongo backend; the in-memory store has no indexes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pymongo import ASCENDING, DESCENDING
from pymongo.operations import IndexModel

from focus_challenge.db.mongodb import get_collection

logger = logging.getLogger(__name__)

Direction = Union[int, str]
KeySpec = List[Tuple[str, Direction]]


def _normalize_key_from_mongo(key_doc: Dict[str, Any]) -> KeySpec:
    """Mongo returns an OrderedDict-like mapping; convert to list of (field, direction)."""
    norm: KeySpec = []
    for k, v in key_doc.items():
        if isinstance(v, (int, float)):
            norm.append((k, int(v)))
        else:
            norm.append((k, str(v)))
    return norm


async def _find_existing_by_keys(coll, keys: KeySpec) -> Optional[Dict[str, Any]]:
    async for ix in coll.list_indexes():
        if 'key' in ix and _normalize_key_from_mongo(ix['key']) == keys:
            return ix
    return None


def _same_options(existing: Dict[str, Any], *, unique: Optional[bool], partial: Optional[Dict[str, Any]]) -> bool:
    if bool(unique) != bool(existing.get('unique', False)):
        return False
    return (partial or None) == (existing.get('partialFilterExpression') or None)


async def ensure_index(coll_name: str, keys: KeySpec, *, name: Optional[str] = None,
                       unique: Optional[bool] = None,
                       partial: Optional[Dict[str, Any]] = None) -> None:
    coll = await get_collection(coll_name)
    existing = await _find_existing_by_keys(coll, keys)
    if existing and _same_options(existing, unique=unique, partial=partial):
        return
    if existing:
        await coll.drop_index(existing['name'])
    opts: Dict[str, Any] = {}
    if name:
        opts['name'] = name
    if unique is not None:
        opts['unique'] = unique
    if partial:
        opts['partialFilterExpression'] = partial
    await coll.create_indexes([IndexModel(keys, **opts)])


async def ensure_indexes() -> None:
    # ---------- tasks ----------
    await ensure_index('tasks', [('day_number', ASCENDING)])
    await ensure_index('tasks', [('is_active', ASCENDING)])

    # ---------- users ----------
    await ensure_index('users', [('role', ASCENDING)])
    await ensure_index('users', [('total_points', DESCENDING)])
    await ensure_index('users', [('role', ASCENDING), ('total_points', DESCENDING)], name='leaderboard_by_role')

    logger.info("Indexes ensured")
