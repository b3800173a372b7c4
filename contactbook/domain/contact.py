from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

FIELDS = ("first_name", "last_name", "email", "mobile")


@dataclass(frozen=True)
class Contact:
    """A row of the `contacts` table. id == 0 means not yet persisted."""

    id: int = 0
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    mobile: str = ""

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Contact":
        return cls(
            id=int(row["id"]),
            first_name=row["first_name"] or "",
            last_name=row["last_name"] or "",
            email=row["email"] or "",
            mobile=row["mobile"] or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
