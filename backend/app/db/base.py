from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.client import Client  # noqa: F401
from backend.app.models.address import Address  # noqa: F401
from backend.app.models.project import Project  # noqa: F401
from backend.app.models.work_hour import WorkHour  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.invoice_work_hour import InvoiceWorkHour  # noqa: F401
