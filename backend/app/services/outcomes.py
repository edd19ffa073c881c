from __future__ import annotations

from dataclasses import dataclass

from app.schemas.common import OutcomeOut


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a best-effort side effect such as sending mail or removing a file."""

    ok: bool
    message: str | None = None

    @classmethod
    def success(cls, message: str | None = None) -> "DeliveryOutcome":
        return cls(ok=True, message=message)

    @classmethod
    def warning(cls, message: str) -> "DeliveryOutcome":
        return cls(ok=False, message=message)

    def to_schema(self) -> OutcomeOut:
        return OutcomeOut(status="ok" if self.ok else "warning", message=self.message)


def collect_warnings(*outcomes: DeliveryOutcome | None) -> list[str]:
    return [outcome.message for outcome in outcomes if outcome is not None and not outcome.ok and outcome.message]
