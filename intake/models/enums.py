"""
Python enums matching the CHECK constraints on the submissions table.
Names and values MUST match the DB DDL exactly.
"""

from enum import Enum


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SubmissionType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class Sphere(str, Enum):
    """Accounting sphere of a German nonprofit (advisory at intake)."""
    IDEELL = "IDEELL"
    ZWECK = "ZWECK"
    VERMOEGEN = "VERMOEGEN"
    WGB = "WGB"


class PaymentMethod(str, Enum):
    BAR = "BAR"
    BANK = "BANK"


class SubmissionSource(str, Enum):
    """Where a submission entered the engine. Used for metrics labels only."""
    CREATE = "create"
    IMPORT = "import"
    INBOX = "inbox"


def check_in(column: str, enum_cls: type[Enum]) -> str:
    """Render a CHECK expression restricting a column to an enum's values."""
    values = ",".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"
