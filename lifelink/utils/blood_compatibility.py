"""Red cell compatibility between recipient and donor blood types."""

from typing import Optional


COMPATIBILITY: dict[str, tuple[str, ...]] = {
    "A+": ("A+", "A-", "O+", "O-"),
    "A-": ("A-", "O-"),
    "B+": ("B+", "B-", "O+", "O-"),
    "B-": ("B-", "O-"),
    "AB+": ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"),
    "AB-": ("A-", "B-", "AB-", "O-"),
    "O+": ("O+", "O-"),
    "O-": ("O-",),
}


def get_compatible_donor_types(recipient_blood_type: Optional[str]) -> list[str]:
    """Donor blood types a recipient can receive. Unknown types match nothing."""
    if not isinstance(recipient_blood_type, str):
        return []
    return list(COMPATIBILITY.get(recipient_blood_type, ()))


def is_compatible(donor_blood_type: str, recipient_blood_type: str) -> bool:
    return donor_blood_type in COMPATIBILITY.get(recipient_blood_type, ())
