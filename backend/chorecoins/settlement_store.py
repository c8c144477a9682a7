"""Durable, concurrency safe storage for allowance settlements.

Settlements are held in memory and guarded by a reader/writer lock. Every
mutation writes a full JSON snapshot of the collection to disk before the
in-memory index is swapped, so a failed write leaves both the file and the
index untouched.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator

from pydantic import TypeAdapter, ValidationError

from chorecoins.exceptions import SettlementStoreError
from chorecoins.models import Settlement
from chorecoins.periods import local_now

logger = logging.getLogger(__name__)

MANUAL_SETTLEMENT_NOTE = "Monthly allowance payment"
ADDITIONAL_PAYMENT_SUFFIX = " (additional payment)"

_SNAPSHOT = TypeAdapter(list[Settlement])


class ReadWriteLock:
    """asyncio lock admitting many readers or a single writer.

    Waiting writers block new readers so a steady stream of reads cannot
    starve a write.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and not self._waiting_writers
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and not self._readers
                )
            except BaseException:
                self._waiting_writers -= 1
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class SettlementStore:
    """Settlement records keyed by id, with per child and per month queries."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = ReadWriteLock()
        self._settlements: list[Settlement] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # --- persistence ------------------------------------------------------

    def _load(self) -> list[Settlement]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError:
            logger.exception("Could not read settlement snapshot %s", self._path)
            return []
        try:
            settlements = _SNAPSHOT.validate_json(raw)
        except ValidationError:
            logger.exception(
                "Settlement snapshot %s is corrupt, starting empty", self._path
            )
            return []
        logger.info("Loaded %d settlements from %s", len(settlements), self._path)
        return settlements

    def _write_snapshot(self, settlements: list[Settlement]) -> None:
        payload = _SNAPSHOT.dump_json(settlements, indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(payload)
            os.replace(tmp, self._path)
        except OSError as exc:
            raise SettlementStoreError(
                f"Could not write settlement snapshot {self._path}"
            ) from exc

    async def _commit(self, settlements: list[Settlement]) -> None:
        """Persist ``settlements`` and make them the current index.

        Must be called while holding the write lock.
        """
        write = asyncio.ensure_future(
            asyncio.to_thread(self._write_snapshot, settlements)
        )
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # The worker thread replaces the file regardless, so wait for it
            # and keep the index in step before giving up.
            await asyncio.wait({write})
            if not write.cancelled() and write.exception() is None:
                self._settlements = settlements
            raise
        self._settlements = settlements

    # --- reads ------------------------------------------------------------

    async def find_by_id(self, settlement_id: uuid.UUID) -> Settlement | None:
        async with self._lock.read():
            for settlement in self._settlements:
                if settlement.id == settlement_id:
                    return settlement.model_copy()
        return None

    async def find_all(self) -> list[Settlement]:
        async with self._lock.read():
            return [s.model_copy() for s in self._settlements]

    async def find_by_child(self, child_id: int) -> list[Settlement]:
        """Settlements for a child, most recently paid first."""
        async with self._lock.read():
            matches = [s.model_copy() for s in self._settlements if s.child_id == child_id]
        return sorted(matches, key=lambda s: s.paid_at, reverse=True)

    async def find_by_child_and_month(
        self, child_id: int, month: int, year: int
    ) -> Settlement | None:
        async with self._lock.read():
            found = self._find_key(child_id, month, year)
            return found.model_copy() if found else None

    async def find_by_date_range(
        self, start: datetime, end: datetime
    ) -> list[Settlement]:
        """Settlements paid between ``start`` and ``end`` inclusive."""
        async with self._lock.read():
            matches = [
                s.model_copy() for s in self._settlements if start <= s.paid_at <= end
            ]
        return sorted(matches, key=lambda s: s.paid_at, reverse=True)

    # --- writes -----------------------------------------------------------

    async def save(self, settlement: Settlement) -> Settlement:
        """Insert ``settlement`` or replace the record with the same id."""
        stored = settlement.model_copy()
        async with self._lock.write():
            if any(s.id == stored.id for s in self._settlements):
                updated = [stored if s.id == stored.id else s for s in self._settlements]
            else:
                updated = [*self._settlements, stored]
            await self._commit(updated)
        logger.debug("Saved settlement %s for child %s", stored.id, stored.child_id)
        return stored.model_copy()

    async def update(self, settlement: Settlement) -> Settlement:
        return await self.save(settlement)

    async def delete(self, settlement_id: uuid.UUID) -> bool:
        """Remove a settlement; returns ``False`` when it did not exist."""
        async with self._lock.write():
            remaining = [s for s in self._settlements if s.id != settlement_id]
            if len(remaining) == len(self._settlements):
                return False
            await self._commit(remaining)
        logger.info("Deleted settlement %s", settlement_id)
        return True

    async def create_if_absent(self, settlement: Settlement) -> tuple[Settlement, bool]:
        """Store ``settlement`` unless its month is already settled.

        Returns the settlement now on record for the month and whether it
        was created by this call.
        """
        async with self._lock.write():
            existing = self._find_key(
                settlement.child_id, settlement.month, settlement.year
            )
            if existing is not None:
                return existing.model_copy(), False
            stored = settlement.model_copy()
            await self._commit([*self._settlements, stored])
        return stored.model_copy(), True

    async def add_payment(
        self,
        child_id: int,
        month: int,
        year: int,
        amount: int,
        *,
        paid_at: datetime | None = None,
        note: str | None = None,
    ) -> Settlement:
        """Record a payment for a month, topping up an existing settlement.

        The first payment for a month creates the settlement. Later payments
        increase its amount and mark the note as an additional payment; the
        original ``paid_at`` is kept.
        """
        if amount < 0:
            raise ValueError("Payment amount cannot be negative")
        async with self._lock.write():
            existing = self._find_key(child_id, month, year)
            if existing is None:
                stored = Settlement(
                    child_id=child_id,
                    amount=amount,
                    month=month,
                    year=year,
                    paid_at=paid_at or local_now(),
                    note=note if note is not None else MANUAL_SETTLEMENT_NOTE,
                )
                updated = [*self._settlements, stored]
            else:
                stored = existing.model_copy(
                    update={
                        "amount": existing.amount + amount,
                        "note": (existing.note or MANUAL_SETTLEMENT_NOTE)
                        + ADDITIONAL_PAYMENT_SUFFIX,
                    }
                )
                updated = [stored if s.id == existing.id else s for s in self._settlements]
            await self._commit(updated)
        logger.info(
            "Recorded payment of %s coins for child %s (%s-%02d)",
            amount,
            child_id,
            year,
            month,
        )
        return stored.model_copy()

    def _find_key(self, child_id: int, month: int, year: int) -> Settlement | None:
        for settlement in self._settlements:
            if settlement.key == (child_id, year, month):
                return settlement
        return None
