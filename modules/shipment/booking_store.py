"""
Booking ledger.

The ledger is keyed by order id and is written before a courier is called:
reserve() claims the order id, record() stores the outcome and release()
gives the id back when the attempt failed without reaching a courier.
mark_failed() flags an attempt that was cut short after a courier may have
been reached; the id stays claimed. Two implementations share the contract,
an in-process one and a SQLAlchemy one backed by the booking_record table.
"""

import abc
import asyncio
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError

from logger import logger

# models
from database import SessionLocal
from models import Booking_Record

# schema
from modules.shipment.shipment_schema import (
    BookingLedgerEntry,
    BookingResult,
    BookingState,
)

# utils
from utils.exceptions import BookingConflictError


class BookingStore(abc.ABC):
    @abc.abstractmethod
    async def reserve(self, order_id: str, provider_name: str) -> BookingLedgerEntry:
        """Claim order_id or raise BookingConflictError."""

    @abc.abstractmethod
    async def record(self, result: BookingResult) -> BookingLedgerEntry:
        pass

    @abc.abstractmethod
    async def release(self, order_id: str) -> None:
        pass

    @abc.abstractmethod
    async def mark_failed(self, order_id: str, reason: str) -> None:
        """Keep order_id claimed but flag the attempt as Failed."""

    @abc.abstractmethod
    async def get(self, order_id: str) -> Optional[BookingLedgerEntry]:
        pass

    @abc.abstractmethod
    async def find_by_tracking_id(self, tracking_id: str) -> Optional[BookingLedgerEntry]:
        pass


def _entry_from_result(result: BookingResult) -> BookingLedgerEntry:
    return BookingLedgerEntry(
        order_id=result.order_id,
        provider_name=result.provider_name,
        state=result.state,
        booking_type=result.booking_type,
        awb_or_tracking_id=result.awb_or_tracking_id,
        raw_provider_error=result.raw_provider_error,
    )


class InMemoryBookingStore(BookingStore):
    def __init__(self):
        self._entries: Dict[str, BookingLedgerEntry] = {}
        self._lock = asyncio.Lock()

    async def reserve(self, order_id, provider_name):
        async with self._lock:
            if order_id in self._entries:
                raise BookingConflictError(order_id)

            entry = BookingLedgerEntry(
                order_id=order_id,
                provider_name=provider_name,
                state=BookingState.REQUESTED,
            )
            self._entries[order_id] = entry
            return entry

    async def record(self, result):
        entry = _entry_from_result(result)
        async with self._lock:
            self._entries[result.order_id] = entry
        return entry

    async def release(self, order_id):
        async with self._lock:
            self._entries.pop(order_id, None)

    async def mark_failed(self, order_id, reason):
        async with self._lock:
            entry = self._entries.get(order_id)
            if entry is not None:
                self._entries[order_id] = entry.model_copy(
                    update={"state": BookingState.FAILED, "raw_provider_error": reason}
                )

    async def get(self, order_id):
        return self._entries.get(order_id)

    async def find_by_tracking_id(self, tracking_id):
        return next(
            (
                entry
                for entry in self._entries.values()
                if entry.awb_or_tracking_id == tracking_id
            ),
            None,
        )


def _entry_from_row(row: Booking_Record) -> BookingLedgerEntry:
    return BookingLedgerEntry.model_validate(row.to_dict())


class SqlBookingStore(BookingStore):
    """
    Ledger on the booking_record table. The unique constraint on order_id
    decides races between processes; sessions run in the default executor.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _reserve(self, order_id, provider_name):
        db = self.session_factory()
        try:
            row = Booking_Record(
                order_id=order_id,
                provider_name=provider_name,
                state=BookingState.REQUESTED.value,
            )
            db.add(row)
            db.commit()
            return _entry_from_row(row)

        except IntegrityError:
            db.rollback()
            logger.warning(msg="Duplicate booking attempt for order %s" % order_id)
            raise BookingConflictError(order_id)

        finally:
            db.close()

    def _record(self, result: BookingResult):
        db = self.session_factory()
        try:
            row = (
                db.query(Booking_Record)
                .filter(Booking_Record.order_id == result.order_id)
                .first()
            )
            if row is None:
                row = Booking_Record(order_id=result.order_id)
                db.add(row)

            row.provider_name = result.provider_name
            row.state = result.state.value
            row.booking_type = result.booking_type.value
            row.awb_or_tracking_id = result.awb_or_tracking_id
            row.raw_provider_error = result.raw_provider_error
            db.commit()
            return _entry_from_row(row)

        except Exception:
            db.rollback()
            raise

        finally:
            db.close()

    def _release(self, order_id):
        db = self.session_factory()
        try:
            db.query(Booking_Record).filter(Booking_Record.order_id == order_id).delete()
            db.commit()
        finally:
            db.close()

    def _mark_failed(self, order_id, reason):
        db = self.session_factory()
        try:
            db.query(Booking_Record).filter(Booking_Record.order_id == order_id).update(
                {"state": BookingState.FAILED.value, "raw_provider_error": reason}
            )
            db.commit()
        finally:
            db.close()

    def _get(self, column, value):
        db = self.session_factory()
        try:
            row = db.query(Booking_Record).filter(column == value).first()
            return _entry_from_row(row) if row else None
        finally:
            db.close()

    async def reserve(self, order_id, provider_name):
        return await self._run(self._reserve, order_id, provider_name)

    async def record(self, result):
        return await self._run(self._record, result)

    async def release(self, order_id):
        await self._run(self._release, order_id)

    async def mark_failed(self, order_id, reason):
        await self._run(self._mark_failed, order_id, reason)

    async def get(self, order_id):
        return await self._run(self._get, Booking_Record.order_id, order_id)

    async def find_by_tracking_id(self, tracking_id):
        return await self._run(self._get, Booking_Record.awb_or_tracking_id, tracking_id)
