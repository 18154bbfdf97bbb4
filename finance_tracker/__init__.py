"""Top-level package for the finance tracker.

The package holds the accounting core of a personal finance tracker.  The
primary modules are:

* ``periods`` - funding period arithmetic for budget schedules
* ``budgets`` - accrual, allocation and lifecycle series for budgets
* ``importers`` - bank CSV adapters producing canonical transactions
* ``duplicates`` - matching imported transactions against stored ones
* ``storage`` / ``services`` - the store interface and the service layer
  an application calls into

Everything operates on in-memory records; ``storage.SqliteStore`` is the
bundled persistent backend.
"""

from . import budgets  # noqa: F401  # re-exported for convenience
from . import duplicates  # noqa: F401  # re-exported for convenience
from . import importers  # noqa: F401  # re-exported for convenience
from . import periods  # noqa: F401  # re-exported for convenience
from .models import Budget, Transaction  # noqa: F401
from .services import BudgetService, DatabaseService, TransactionService  # noqa: F401
from .storage import InMemoryStore, SqliteStore, TransactionStore  # noqa: F401


__all__ = [
    "budgets",
    "duplicates",
    "importers",
    "periods",
    "Budget",
    "Transaction",
    "BudgetService",
    "DatabaseService",
    "TransactionService",
    "InMemoryStore",
    "SqliteStore",
    "TransactionStore",
]
