"""Domain errors raised by the reporting and billing services."""


class TimebillError(Exception):
    """Base class for errors the HTTP layer translates into responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TimebillError):
    """A referenced entity is missing or not owned by the caller."""

    status_code = 404


class ValidationError(TimebillError):
    """Malformed input: empty selection, bad amount, inverted date range."""

    status_code = 400


class DuplicateBillingError(TimebillError):
    """A work-hour entry is already linked to a non-canceled invoice."""

    status_code = 409

    def __init__(self, message: str, *, work_hour_ids: list[int], invoice_ids: list[int]):
        super().__init__(message)
        self.work_hour_ids = work_hour_ids
        self.invoice_ids = invoice_ids

    @classmethod
    def for_links(cls, links) -> "DuplicateBillingError":
        """Build the error from active invoice links (see `InvoiceWorkHourLink`)."""
        labels = sorted({link.invoice_number or str(link.invoice_id) for link in links})
        return cls(
            f"Some work hours are already billed in non-canceled invoices: {', '.join(labels)}",
            work_hour_ids=sorted({link.work_hour_id for link in links}),
            invoice_ids=sorted({link.invoice_id for link in links}),
        )


class TransactionError(TimebillError):
    """An atomic write failed and was rolled back."""

    status_code = 500
