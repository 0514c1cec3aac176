"""SQLAlchemy implementation of the reporting data-access interface."""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from backend.app.core.exceptions import DuplicateBillingError, NotFoundError, TransactionError
from backend.app.core.time import utc_now
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice, InvoiceStatus
from backend.app.models.invoice_work_hour import InvoiceWorkHour
from backend.app.models.project import Project
from backend.app.models.work_hour import WorkHour
from backend.app.schemas.filters import InvoiceFilter, WorkHourFilter
from backend.app.schemas.invoice import NewInvoice
from backend.app.schemas.records import (
    ClientRecord,
    InvoiceRecord,
    InvoiceWorkHourLink,
    ProjectRecord,
    WorkHourEntry,
)

logger = logging.getLogger(__name__)


class CRUDReporting:
    """Read snapshots and atomic invoice writes.

    Every call opens its own session, so callers may run reads from several
    threads at once.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # Work hours

    def list_work_hours(
        self, filters: WorkHourFilter, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[WorkHourEntry]:
        with self._session_factory() as db:
            query = self._work_hour_query(db, filters)
            if newest_first:
                query = query.order_by(WorkHour.created_at.desc(), WorkHour.id.desc())
            else:
                query = query.order_by(WorkHour.date.asc(), WorkHour.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [WorkHourEntry.model_validate(row) for row in query.all()]

    def list_unbilled_work_hours(self, filters: WorkHourFilter) -> List[WorkHourEntry]:
        active_link = (
            select(InvoiceWorkHour.id)
            .join(Invoice, InvoiceWorkHour.invoice_id == Invoice.id)
            .where(
                InvoiceWorkHour.work_hour_id == WorkHour.id,
                Invoice.status != InvoiceStatus.CANCELED.value,
            )
            .exists()
        )
        with self._session_factory() as db:
            query = (
                self._work_hour_query(db, filters)
                .filter(~active_link)
                .order_by(WorkHour.date.desc(), WorkHour.id.desc())
            )
            return [WorkHourEntry.model_validate(row) for row in query.all()]

    def get_work_hours(self, user_id: int, ids: Iterable[int]) -> List[WorkHourEntry]:
        id_list = list(ids)
        if not id_list:
            return []
        with self._session_factory() as db:
            rows = (
                db.query(WorkHour)
                .options(selectinload(WorkHour.client))
                .filter(WorkHour.user_id == user_id, WorkHour.id.in_(id_list))
                .order_by(WorkHour.date.asc(), WorkHour.id.asc())
                .all()
            )
            return [WorkHourEntry.model_validate(row) for row in rows]

    # Invoices

    def list_invoices(
        self, filters: InvoiceFilter, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[InvoiceRecord]:
        with self._session_factory() as db:
            query = self._invoice_query(db, filters.user_id)
            if filters.client_id is not None:
                query = query.filter(Invoice.client_id == filters.client_id)
            if filters.status is not None:
                query = query.filter(Invoice.status == filters.status.value)
            if filters.date_from is not None or filters.date_to is not None:
                in_range = select(InvoiceWorkHour.id).join(WorkHour, InvoiceWorkHour.work_hour_id == WorkHour.id)
                in_range = in_range.where(InvoiceWorkHour.invoice_id == Invoice.id)
                if filters.date_from is not None:
                    in_range = in_range.where(WorkHour.date >= filters.date_from)
                if filters.date_to is not None:
                    in_range = in_range.where(WorkHour.date <= filters.date_to)
                query = query.filter(in_range.exists())
            if newest_first:
                query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
            else:
                query = query.order_by(Invoice.created_at.asc(), Invoice.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [InvoiceRecord.model_validate(row) for row in query.all()]

    def get_invoice(self, user_id: int, invoice_id: int) -> Optional[InvoiceRecord]:
        with self._session_factory() as db:
            row = self._invoice_query(db, user_id).filter(Invoice.id == invoice_id).first()
            return InvoiceRecord.model_validate(row) if row else None

    def find_active_links(
        self, work_hour_ids: Iterable[int], exclude_invoice_id: Optional[int] = None
    ) -> List[InvoiceWorkHourLink]:
        id_list = list(work_hour_ids)
        if not id_list:
            return []
        with self._session_factory() as db:
            return self._active_links(db, id_list, exclude_invoice_id)

    def create_invoice_with_links(self, invoice: NewInvoice, work_hour_ids: Iterable[int]) -> InvoiceRecord:
        id_list = list(work_hour_ids)
        values = invoice.model_dump()
        values["status"] = invoice.status.value
        with self._session_factory() as db:
            try:
                with db.begin():
                    self._lock_work_hours(db, id_list)
                    row = Invoice(**values)
                    db.add(row)
                    db.flush()  # obtain invoice id; also takes the write lock before the re-check
                    self._ensure_unbilled(db, id_list, row.id)
                    db.add_all(self._build_links(row.id, id_list))
                    invoice_id = row.id
            except SQLAlchemyError as exc:
                logger.error("Invoice creation for client %s rolled back: %s", invoice.client_id, exc)
                raise TransactionError("Could not create invoice") from exc
            return self._fetch_invoice(db, invoice_id)

    def replace_invoice_links(
        self,
        invoice_id: int,
        work_hour_ids: Iterable[int],
        changes: Optional[Mapping[str, Any]] = None,
    ) -> InvoiceRecord:
        return self._write_invoice(invoice_id, list(work_hour_ids), changes or {})

    def update_invoice(self, invoice_id: int, changes: Mapping[str, Any]) -> InvoiceRecord:
        return self._write_invoice(invoice_id, None, changes)

    # Clients and projects

    def list_clients(
        self, user_id: int, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[ClientRecord]:
        with self._session_factory() as db:
            query = db.query(Client).filter(Client.user_id == user_id)
            if newest_first:
                query = query.order_by(Client.created_at.desc(), Client.id.desc())
            else:
                query = query.order_by(Client.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [ClientRecord.model_validate(row) for row in query.all()]

    def get_client(self, user_id: int, client_id: int) -> Optional[ClientRecord]:
        with self._session_factory() as db:
            row = db.query(Client).filter(Client.id == client_id, Client.user_id == user_id).first()
            return ClientRecord.model_validate(row) if row else None

    def list_projects(self, user_id: int, ids: Iterable[int]) -> List[ProjectRecord]:
        id_list = list(ids)
        if not id_list:
            return []
        with self._session_factory() as db:
            rows = db.query(Project).filter(Project.user_id == user_id, Project.id.in_(id_list)).all()
            return [ProjectRecord.model_validate(row) for row in rows]

    # Helpers

    def _work_hour_query(self, db: Session, filters: WorkHourFilter):
        query = db.query(WorkHour).options(selectinload(WorkHour.client)).filter(WorkHour.user_id == filters.user_id)
        if filters.client_id is not None:
            query = query.filter(WorkHour.client_id == filters.client_id)
        if filters.date_from is not None:
            query = query.filter(WorkHour.date >= filters.date_from)
        if filters.date_to is not None:
            query = query.filter(WorkHour.date <= filters.date_to)
        return query

    def _invoice_query(self, db: Session, user_id: int):
        return (
            db.query(Invoice)
            .join(Client, Invoice.client_id == Client.id)
            .filter(Client.user_id == user_id)
            .options(
                selectinload(Invoice.client),
                selectinload(Invoice.work_hours).selectinload(WorkHour.client),
            )
        )

    def _fetch_invoice(self, db: Session, invoice_id: int) -> InvoiceRecord:
        row = (
            db.query(Invoice)
            .populate_existing()
            .options(
                selectinload(Invoice.client),
                selectinload(Invoice.work_hours).selectinload(WorkHour.client),
            )
            .filter(Invoice.id == invoice_id)
            .one()
        )
        return InvoiceRecord.model_validate(row)

    def _build_links(self, invoice_id: int, work_hour_ids: Iterable[int]) -> List[InvoiceWorkHour]:
        return [InvoiceWorkHour(invoice_id=invoice_id, work_hour_id=wid) for wid in work_hour_ids]

    def _active_links(
        self, db: Session, work_hour_ids: List[int], exclude_invoice_id: Optional[int] = None
    ) -> List[InvoiceWorkHourLink]:
        query = (
            db.query(InvoiceWorkHour, Invoice)
            .join(Invoice, InvoiceWorkHour.invoice_id == Invoice.id)
            .filter(
                InvoiceWorkHour.work_hour_id.in_(work_hour_ids),
                Invoice.status != InvoiceStatus.CANCELED.value,
            )
        )
        if exclude_invoice_id is not None:
            query = query.filter(Invoice.id != exclude_invoice_id)
        return [
            InvoiceWorkHourLink(
                id=link.id,
                invoice_id=link.invoice_id,
                work_hour_id=link.work_hour_id,
                created_at=link.created_at,
                invoice_status=invoice.status,
                invoice_number=invoice.number,
            )
            for link, invoice in query.order_by(InvoiceWorkHour.id.asc()).all()
        ]

    def _lock_work_hours(self, db: Session, work_hour_ids: List[int]) -> None:
        # Row locks on backends with FOR UPDATE; SQLite serializes writers at the first write instead.
        if work_hour_ids:
            db.query(WorkHour.id).filter(WorkHour.id.in_(work_hour_ids)).with_for_update().all()

    def _ensure_unbilled(self, db: Session, work_hour_ids: List[int], invoice_id: int) -> None:
        """Re-check the billing guard inside the write transaction; raising rolls it back."""
        links = self._active_links(db, work_hour_ids, exclude_invoice_id=invoice_id)
        if links:
            logger.warning("Invoice %s write lost a billing race for work hours %s", invoice_id, work_hour_ids)
            raise DuplicateBillingError.for_links(links)

    def _write_invoice(
        self,
        invoice_id: int,
        work_hour_ids: Optional[List[int]],
        changes: Mapping[str, Any],
    ) -> InvoiceRecord:
        with self._session_factory() as db:
            try:
                with db.begin():
                    if work_hour_ids is not None:
                        self._lock_work_hours(db, work_hour_ids)
                    row = db.get(Invoice, invoice_id)
                    if row is None:
                        raise NotFoundError("Invoice not found")
                    for field, value in changes.items():
                        if field == "status" and value is not None:
                            value = InvoiceStatus(value).value
                        setattr(row, field, value)
                    if work_hour_ids is not None:
                        row.updated_at = utc_now()
                        db.flush()  # take the write lock before the re-check
                        self._ensure_unbilled(db, work_hour_ids, invoice_id)
                        wanted = set(work_hour_ids)
                        current = {link.work_hour_id: link for link in row.work_hour_links}
                        for work_hour_id, link in current.items():
                            if work_hour_id not in wanted:
                                row.work_hour_links.remove(link)
                        row.work_hour_links.extend(
                            self._build_links(invoice_id, [wid for wid in work_hour_ids if wid not in current])
                        )
            except SQLAlchemyError as exc:
                logger.error("Invoice %s update rolled back: %s", invoice_id, exc)
                raise TransactionError("Could not update invoice") from exc
            return self._fetch_invoice(db, invoice_id)
