"""
Unit of Work Pattern

Manages database transactions and ensures that domain events and audit
entries are dispatched only after a successful transaction commit.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List
import logging

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A pending audit record, written to the sink after commit"""
    action: str  # INSERT / UPDATE / DELETE
    table: str
    record_id: int | str | None
    old_values: dict | None = None
    new_values: dict | None = None
    actor_id: int | None = None
    extra: dict = field(default_factory=dict)


def get_audit_sink():
    """Instantiate the configured audit-log sink (``BOOKING_AUDIT_LOG_SINK``)"""
    sink_path = getattr(settings, 'BOOKING_AUDIT_LOG_SINK', '')
    if not sink_path:
        return None
    return import_string(sink_path)()


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        """Collect events from aggregate root"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Manages Django database transactions and ensures domain events and
    audit entries are dispatched after successful commit.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = booking_repo.get_by_id(booking_id, lock=True)
            old = booking.snapshot()

            booking.check_in(actor, today)

            uow.collect_events(booking)
            booking_repo.save(booking)
            uow.record_update('bookings', booking.id, old, booking.snapshot(), actor.user_id)

            # Transaction commits here
        # Events and audit entries are dispatched after commit
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._audit_entries: List[AuditEntry] = []
        self._transaction = None

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """
        Commit changes and schedule post-commit dispatch

        Dispatch uses Django's transaction.on_commit() so nothing is
        published or audited for a transaction that rolls back.
        """
        logger.debug(
            f"Committing transaction with {len(self._events)} events "
            f"and {len(self._audit_entries)} audit entries"
        )

        events = self._events.copy()
        audit_entries = self._audit_entries.copy()
        self._events.clear()
        self._audit_entries.clear()

        if audit_entries:
            transaction.on_commit(lambda: self._write_audit(audit_entries))
        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Rollback changes and discard events"""
        logger.warning(
            f"Rolling back transaction, discarding {len(self._events)} events "
            f"and {len(self._audit_entries)} audit entries"
        )
        self._events.clear()
        self._audit_entries.clear()

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all domain events from the aggregate and
        clears them from the aggregate.
        """
        if hasattr(aggregate, 'events'):
            new_events = aggregate.events
            if new_events:
                self._events.extend(new_events)
                aggregate.clear_events()
                logger.debug(
                    f"Collected {len(new_events)} events from "
                    f"{aggregate.__class__.__name__} (ID: {aggregate.id})"
                )

    def add_events(self, events: List[DomainEvent]):
        """Queue events raised outside an aggregate (e.g. by a service)"""
        self._events.extend(events)

    # ----- Audit trail -----

    def record_insert(self, table: str, record_id, new_values: dict, actor_id: int | None = None):
        self._audit_entries.append(AuditEntry('INSERT', table, record_id, None, new_values, actor_id))

    def record_update(self, table: str, record_id, old_values: dict, new_values: dict, actor_id: int | None = None):
        self._audit_entries.append(AuditEntry('UPDATE', table, record_id, old_values, new_values, actor_id))

    def record_delete(self, table: str, record_id, old_values: dict, actor_id: int | None = None):
        self._audit_entries.append(AuditEntry('DELETE', table, record_id, old_values, None, actor_id))

    def _write_audit(self, entries: List[AuditEntry]):
        """
        Write audit entries to the configured sink

        Called after successful transaction commit. A failing sink is
        logged; the business transaction has already committed.
        """
        try:
            sink = get_audit_sink()
        except ImportError as e:
            logger.error(f"Audit sink could not be loaded: {e}", exc_info=True)
            return

        if sink is None:
            return

        writers = {
            'INSERT': lambda entry: sink.log_insert(entry.table, entry.record_id, entry.new_values, entry.actor_id),
            'UPDATE': lambda entry: sink.log_update(
                entry.table, entry.record_id, entry.old_values, entry.new_values, entry.actor_id
            ),
            'DELETE': lambda entry: sink.log_delete(entry.table, entry.record_id, entry.old_values, entry.actor_id),
        }
        for entry in entries:
            try:
                writers[entry.action](entry)
            except Exception as e:
                logger.error(
                    f"Error writing audit entry {entry.action} {entry.table}#{entry.record_id}: {e}",
                    exc_info=True
                )

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to message bus

        Called after successful transaction commit.
        """
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            message_bus.publish_events(events)
        except Exception as e:
            logger.error(f"Error publishing events: {e}", exc_info=True)
