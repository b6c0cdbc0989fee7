"""Errors raised by the commission engine."""


class ContractValidationError(ValueError):
    """Invalid contract input, reported before anything is persisted.

    ``field`` names the offending input so the API can point at it.
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_detail(self) -> dict:
        return {"field": self.field, "message": self.message}


def require_complete(table, members, name: str) -> None:
    """Raise unless ``table`` has exactly one key per member of ``members``."""
    missing = set(members) - set(table)
    extra = set(table) - set(members)
    if missing or extra:
        raise RuntimeError(
            f"{name} does not match {members.__name__}: "
            f"missing {sorted(m.value for m in missing)}, "
            f"unexpected {sorted(str(k) for k in extra)}"
        )
