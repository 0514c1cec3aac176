"""Data-access interface consumed by the reporting and billing services."""

from typing import Any, Iterable, List, Mapping, Optional, Protocol

from backend.app.schemas.filters import InvoiceFilter, WorkHourFilter
from backend.app.schemas.invoice import NewInvoice
from backend.app.schemas.records import (
    ClientRecord,
    InvoiceRecord,
    InvoiceWorkHourLink,
    ProjectRecord,
    WorkHourEntry,
)


class ReportingRepository(Protocol):
    def list_work_hours(
        self, filters: WorkHourFilter, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[WorkHourEntry]:
        ...

    def list_unbilled_work_hours(self, filters: WorkHourFilter) -> List[WorkHourEntry]:
        """Entries with no link to a non-canceled invoice."""
        ...

    def get_work_hours(self, user_id: int, ids: Iterable[int]) -> List[WorkHourEntry]:
        ...

    def list_invoices(
        self, filters: InvoiceFilter, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[InvoiceRecord]:
        ...

    def get_invoice(self, user_id: int, invoice_id: int) -> Optional[InvoiceRecord]:
        ...

    def list_clients(
        self, user_id: int, *, newest_first: bool = False, limit: Optional[int] = None
    ) -> List[ClientRecord]:
        ...

    def get_client(self, user_id: int, client_id: int) -> Optional[ClientRecord]:
        ...

    def list_projects(self, user_id: int, ids: Iterable[int]) -> List[ProjectRecord]:
        ...

    def find_active_links(
        self, work_hour_ids: Iterable[int], exclude_invoice_id: Optional[int] = None
    ) -> List[InvoiceWorkHourLink]:
        """Links from the given entries to invoices whose status is not CANCELED."""
        ...

    def create_invoice_with_links(self, invoice: NewInvoice, work_hour_ids: Iterable[int]) -> InvoiceRecord:
        """Insert the invoice and one link per entry in a single transaction.

        The billing guard is re-checked inside the transaction; a conflict raises
        `DuplicateBillingError` and nothing is written.
        """
        ...

    def replace_invoice_links(
        self,
        invoice_id: int,
        work_hour_ids: Iterable[int],
        changes: Optional[Mapping[str, Any]] = None,
    ) -> InvoiceRecord:
        """Swap the invoice's link set (and apply column changes) in a single transaction.

        Same in-transaction guard as `create_invoice_with_links`.
        """
        ...

    def update_invoice(self, invoice_id: int, changes: Mapping[str, Any]) -> InvoiceRecord:
        ...
