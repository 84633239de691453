"""Employee QR payloads.

Badges encode ``EMP:<employee id>:<name>``; scanners at the gate may also send the
bare employee id. Rendering and decoding images is done by the scanning client.
"""

from __future__ import annotations

import re

from ..core.exceptions import ValidationError
from .validators import require_non_empty

_LEGACY_PATTERN = re.compile(r"^EMP:([^:]+):(.+)$")
_BARE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")
_NAME_STRIP = re.compile(r"[^a-zA-Z0-9 ]")


def build_employee_qr_payload(employee_id: int, name: str) -> str:
    return f"EMP:{employee_id}:{_NAME_STRIP.sub('', name)}"


def parse_employee_qr(payload: str) -> int:
    """Return the employee id carried by a scanned payload."""
    data = require_non_empty(payload, "QR code")

    match = _LEGACY_PATTERN.match(data)
    if match:
        raw_id = match.group(1)
    elif _BARE_ID_PATTERN.match(data):
        raw_id = data
    else:
        raise ValidationError("Invalid QR code format. Expected format: EMP:ID:NAME")

    if not raw_id.isdigit():
        raise ValidationError(f"Invalid employee id in QR code: {raw_id!r}")
    return int(raw_id)
