"""Structured validation results returned by the domain entities."""
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class ValidationErrorDetail:
    """A single failed check: the field name and a human readable detail."""
    error: str
    detail: str


@dataclass
class ValidationResult:
    """Outcome of ``validate()``. Never raised, only returned."""
    errors: List[ValidationErrorDetail] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, error: str, detail: str) -> None:
        self.errors.append(ValidationErrorDetail(error=error, detail=detail))

    def extend(self, other: 'ValidationResult') -> None:
        self.errors.extend(other.errors)

    def as_pairs(self) -> List[Tuple[str, str]]:
        return [(e.error, e.detail) for e in self.errors]

    def messages(self) -> List[str]:
        return [e.detail for e in self.errors]
