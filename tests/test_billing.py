import logging
import threading
from datetime import date, datetime, timezone

import pytest

from backend.app.core.exceptions import (
    DuplicateBillingError,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from backend.app.core.settings import get_settings
from backend.app.crud.crud_reporting import CRUDReporting
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice, InvoiceStatus
from backend.app.models.invoice_work_hour import InvoiceWorkHour
from backend.app.models.project import Project
from backend.app.models.user import User
from backend.app.models.work_hour import WorkHour
from backend.app.schemas.filters import ReportFilters
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate, NewInvoice
from backend.app.schemas.records import WorkHourEntry
from backend.app.services.billing import InvoiceService, calculate_invoice_amount


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service():
    return InvoiceService(CRUDReporting(SessionLocal), get_settings())


def _create_user_client(db, email="owner@example.com", company="Acme"):
    user = User(email=email)
    db.add(user)
    db.commit()
    client = Client(user_id=user.id, email=f"billing@{company.lower()}.test", company=company)
    db.add(client)
    db.commit()
    return user, client


def _create_project(db, user, client, rate):
    project = Project(user_id=user.id, client_id=client.id, name="Website", hourly_rate=rate)
    db.add(project)
    db.commit()
    return project


def _create_work_hour(db, user, client, day, hours, project=None):
    work_hour = WorkHour(
        user_id=user.id,
        client_id=client.id,
        project_id=project.id if project else None,
        date=day,
        hours=hours,
    )
    db.add(work_hour)
    db.commit()
    return work_hour


def _seed():
    db = SessionLocal()
    try:
        user, client = _create_user_client(db)
        project = _create_project(db, user, client, 100.0)
        first = _create_work_hour(db, user, client, date(2025, 6, 10), 3, project)
        second = _create_work_hour(db, user, client, date(2025, 6, 11), 5, project)
        third = _create_work_hour(db, user, client, date(2025, 6, 12), 2)
        return user, client, [first.id, second.id, third.id]
    finally:
        db.close()


def _count(model):
    db = SessionLocal()
    try:
        return db.query(model).count()
    finally:
        db.close()


def test_calculate_invoice_amount_prefers_project_rate():
    stamp = datetime(2025, 6, 1, tzinfo=timezone.utc)

    def entry(entry_id, hours, project_id=None):
        return WorkHourEntry(
            id=entry_id,
            date=date(2025, 6, 1),
            hours=hours,
            client_id=1,
            project_id=project_id,
            user_id=1,
            created_at=stamp,
            updated_at=stamp,
        )

    entries = [entry(1, 3, project_id=7), entry(2, 1.5), entry(3, 2, project_id=8)]
    assert calculate_invoice_amount(entries, {7: 100.0, 8: None}, 40.0) == 300 + 60 + 80
    assert calculate_invoice_amount(entries, {7: 100.0}, None) == 300
    assert calculate_invoice_amount([entry(1, 0.125)], {}, 1.0) == 0.13
    assert calculate_invoice_amount([], {}, 50.0) == 0


def test_create_invoice_links_entries_and_computes_amount(service):
    user, client, (first, second, _) = _seed()

    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, second], number="INV-1"))

    assert invoice.amount == 800
    assert invoice.status == InvoiceStatus.PENDING
    assert invoice.client_id == client.id
    assert invoice.number == "INV-1"
    assert invoice.work_hour_ids == [first, second]
    assert _count(InvoiceWorkHour) == 2


def test_create_invoice_collapses_duplicate_ids(service):
    user, _, (first, second, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, first, second]))
    assert invoice.work_hour_ids == [first, second]
    assert _count(InvoiceWorkHour) == 2


def test_create_invoice_rate_fallbacks(service):
    user, _, (first, _, third) = _seed()
    with_override = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, third], hourly_rate=50))
    assert with_override.amount == 300 + 100

    other_user, client, (a, _, c) = _seed_second_owner()
    fallback = service.create_invoice(other_user.id, InvoiceCreate(work_hour_ids=[c], client_id=client.id))
    assert fallback.amount == 0


def _seed_second_owner():
    db = SessionLocal()
    try:
        user, client = _create_user_client(db, email="second@example.com", company="Globex")
        a = _create_work_hour(db, user, client, date(2025, 6, 1), 1)
        b = _create_work_hour(db, user, client, date(2025, 6, 2), 1)
        c = _create_work_hour(db, user, client, date(2025, 6, 3), 4)
        return user, client, [a.id, b.id, c.id]
    finally:
        db.close()


def test_create_invoice_with_explicit_amount(service):
    user, _, (first, _, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first], amount=123.45))
    assert invoice.amount == 123.45


@pytest.mark.parametrize("amount", [-1, float("nan"), float("inf")])
def test_create_invoice_rejects_bad_amount(service, amount):
    user, _, (first, _, _) = _seed()
    with pytest.raises(ValidationError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first], amount=amount))
    assert _count(Invoice) == 0


def test_create_invoice_rejects_empty_selection(service):
    user, _, _ = _seed()
    with pytest.raises(ValidationError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[]))


def test_create_invoice_unknown_or_foreign_entries_not_found(service):
    user, _, (first, _, _) = _seed()
    _, _, (foreign, _, _) = _seed_second_owner()
    with pytest.raises(NotFoundError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, 9999]))
    with pytest.raises(NotFoundError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[foreign]))
    assert _count(Invoice) == 0


def test_create_invoice_client_must_be_owned_and_match(service):
    user, _, (first, _, _) = _seed()
    _, foreign_client, _ = _seed_second_owner()
    with pytest.raises(NotFoundError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first], client_id=foreign_client.id))

    db = SessionLocal()
    try:
        other_client = Client(user_id=user.id, email="ops@initech.test", company="Initech")
        db.add(other_client)
        db.commit()
        other_entry = _create_work_hour(db, user, other_client, date(2025, 6, 13), 1)
        other_client_id, other_entry_id = other_client.id, other_entry.id
    finally:
        db.close()

    with pytest.raises(ValidationError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, other_entry_id]))
    with pytest.raises(ValidationError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first], client_id=other_client_id))


@pytest.mark.parametrize("blocking_status", [InvoiceStatus.PENDING, InvoiceStatus.PAID])
def test_entry_on_active_invoice_cannot_be_billed_again(service, blocking_status):
    user, _, (first, second, _) = _seed()
    existing = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    if blocking_status != InvoiceStatus.PENDING:
        service.update_invoice(user.id, existing.id, InvoiceUpdate(status=blocking_status))

    with pytest.raises(DuplicateBillingError) as exc_info:
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, second]))

    assert exc_info.value.work_hour_ids == [first]
    assert exc_info.value.invoice_ids == [existing.id]
    assert _count(Invoice) == 1


def test_entry_from_canceled_invoice_can_be_billed_again(service):
    user, _, (first, _, _) = _seed()
    canceled = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    service.update_invoice(user.id, canceled.id, InvoiceUpdate(status=InvoiceStatus.CANCELED))

    rebilled = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))

    assert rebilled.id != canceled.id
    assert rebilled.work_hour_ids == [first]
    assert _count(InvoiceWorkHour) == 2


def test_failed_link_write_leaves_no_invoice(service, monkeypatch):
    user, _, (first, second, _) = _seed()

    def duplicated_links(self, invoice_id, work_hour_ids):
        ids = list(work_hour_ids)
        return [InvoiceWorkHour(invoice_id=invoice_id, work_hour_id=wid) for wid in ids + ids]

    monkeypatch.setattr(CRUDReporting, "_build_links", duplicated_links)

    with pytest.raises(TransactionError):
        service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, second]))
    assert _count(Invoice) == 0
    assert _count(InvoiceWorkHour) == 0


def test_update_replaces_links_and_recomputes_amount(service):
    user, _, (first, second, third) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    assert invoice.amount == 300

    updated = service.update_invoice(user.id, invoice.id, InvoiceUpdate(work_hour_ids=[second, third], hourly_rate=10))

    assert updated.work_hour_ids == [second, third]
    assert updated.amount == 500 + 20
    assert _count(InvoiceWorkHour) == 2
    available = service.list_billable_work_hours(user.id, ReportFilters())
    assert [wh.id for wh in available] == [first]


def test_update_keeps_explicit_amount_when_relinking(service):
    user, _, (first, second, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    updated = service.update_invoice(user.id, invoice.id, InvoiceUpdate(work_hour_ids=[first, second], amount=99))
    assert updated.amount == 99
    assert updated.work_hour_ids == [first, second]


def test_update_guard_ignores_the_invoices_own_links(service):
    user, _, (first, second, third) = _seed()
    one = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    two = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[second]))

    with pytest.raises(DuplicateBillingError):
        service.update_invoice(user.id, two.id, InvoiceUpdate(work_hour_ids=[first, second]))

    updated = service.update_invoice(user.id, one.id, InvoiceUpdate(work_hour_ids=[first, third]))
    assert updated.work_hour_ids == [first, third]


def test_failed_link_replacement_keeps_previous_state(service, monkeypatch):
    user, _, (first, second, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))

    def duplicated_links(self, invoice_id, work_hour_ids):
        ids = list(work_hour_ids)
        return [InvoiceWorkHour(invoice_id=invoice_id, work_hour_id=wid) for wid in ids + ids]

    monkeypatch.setattr(CRUDReporting, "_build_links", duplicated_links)
    with pytest.raises(TransactionError):
        service.update_invoice(user.id, invoice.id, InvoiceUpdate(work_hour_ids=[first, second]))
    monkeypatch.undo()

    current = service.repository.get_invoice(user.id, invoice.id)
    assert current.work_hour_ids == [first]
    assert current.amount == 300


def test_update_status_and_fields(service):
    user, _, (first, _, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))

    updated = service.update_invoice(
        user.id, invoice.id, InvoiceUpdate(status=InvoiceStatus.PAID, number="INV-9", description="June")
    )

    assert updated.status == InvoiceStatus.PAID
    assert updated.number == "INV-9"
    assert updated.description == "June"
    assert updated.amount == 300


@pytest.mark.parametrize("terminal", [InvoiceStatus.PAID, InvoiceStatus.CANCELED])
def test_terminal_status_cannot_change(service, terminal):
    user, _, (first, _, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    service.update_invoice(user.id, invoice.id, InvoiceUpdate(status=terminal))

    with pytest.raises(ValidationError):
        service.update_invoice(user.id, invoice.id, InvoiceUpdate(status=InvoiceStatus.PENDING))


def test_links_only_change_on_pending_invoices(service):
    user, _, (first, second, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    service.update_invoice(user.id, invoice.id, InvoiceUpdate(status=InvoiceStatus.PAID))

    with pytest.raises(ValidationError):
        service.update_invoice(user.id, invoice.id, InvoiceUpdate(work_hour_ids=[first, second]))
    with pytest.raises(ValidationError):
        service.update_invoice(user.id, invoice.id, InvoiceUpdate(work_hour_ids=[]))


def test_update_missing_or_foreign_invoice_not_found(service):
    user, _, (first, _, _) = _seed()
    other_user, _, (foreign, _, _) = _seed_second_owner()
    foreign_invoice = service.create_invoice(other_user.id, InvoiceCreate(work_hour_ids=[foreign]))

    with pytest.raises(NotFoundError):
        service.update_invoice(user.id, 9999, InvoiceUpdate(number="X"))
    with pytest.raises(NotFoundError):
        service.update_invoice(user.id, foreign_invoice.id, InvoiceUpdate(number="X"))


def test_cancellation_logs_released_work_hours(service, caplog):
    user, _, (first, second, _) = _seed()
    invoice = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first, second]))

    with caplog.at_level(logging.INFO, logger="backend.app.services.billing"):
        service.update_invoice(user.id, invoice.id, InvoiceUpdate(status=InvoiceStatus.CANCELED))

    assert f"Invoice {invoice.id} canceled - 2 work hours are now available" in caplog.text


def test_list_billable_work_hours_skips_active_links(service):
    user, _, (first, second, third) = _seed()
    service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    canceled = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[second]))
    service.update_invoice(user.id, canceled.id, InvoiceUpdate(status=InvoiceStatus.CANCELED))

    available = service.list_billable_work_hours(user.id, ReportFilters())
    assert [wh.id for wh in available] == [third, second]

    ranged = service.list_billable_work_hours(user.id, ReportFilters(end_date=date(2025, 6, 11)))
    assert [wh.id for wh in ranged] == [second]

    with pytest.raises(ValidationError):
        service.list_billable_work_hours(
            user.id, ReportFilters(start_date=date(2025, 6, 12), end_date=date(2025, 6, 10))
        )


def test_concurrent_creates_bill_an_entry_only_once():
    user, client, (first, _, _) = _seed()
    both_checked = threading.Barrier(2, timeout=10)

    class InterleavingRepository(CRUDReporting):
        """Holds every caller after the pre-check until both requests have passed it."""

        def find_active_links(self, work_hour_ids, exclude_invoice_id=None):
            links = super().find_active_links(work_hour_ids, exclude_invoice_id)
            both_checked.wait()
            return links

    racing = InvoiceService(InterleavingRepository(SessionLocal), get_settings())
    created, conflicts = [], []

    def bill():
        try:
            created.append(racing.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first])).id)
        except DuplicateBillingError as exc:
            conflicts.append(exc)

    threads = [threading.Thread(target=bill) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert len(created) == 1
    assert len(conflicts) == 1
    assert conflicts[0].work_hour_ids == [first]
    assert conflicts[0].invoice_ids == created
    assert _count(Invoice) == 1
    assert _count(InvoiceWorkHour) == 1


def test_repository_rejects_billed_entries_inside_the_write(service):
    user, client, (first, second, _) = _seed()
    existing = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[first]))
    other = service.create_invoice(user.id, InvoiceCreate(work_hour_ids=[second]))
    repository = service.repository

    with pytest.raises(DuplicateBillingError) as exc_info:
        repository.create_invoice_with_links(NewInvoice(client_id=client.id, amount=10), [first])
    assert exc_info.value.invoice_ids == [existing.id]
    assert _count(Invoice) == 2

    with pytest.raises(DuplicateBillingError):
        repository.replace_invoice_links(other.id, [first, second], {"amount": 800})
    unchanged = repository.get_invoice(user.id, other.id)
    assert unchanged.work_hour_ids == [second]
    assert unchanged.amount == 500
    assert _count(InvoiceWorkHour) == 2
