"""User Names — display name assembly from profile name parts."""


def compute_full_name(
    first_name: str | None,
    last_name: str | None,
    middle_name: str | None = None,
) -> str:
    """Join the non-blank name parts with single spaces. Empty when none."""
    parts = (
        (p or "").strip() for p in (first_name, middle_name, last_name)
    )
    return " ".join(p for p in parts if p)

