"""
Naming service: candidate serial numbers and QR code URLs

Pure formatting; uniqueness is checked by the caller.
"""
from urllib.parse import quote


def format_serial_no(sequence: int, prefix: str = "WD") -> str:
    """
    Human-readable serial number for the n-th registered candidate.

    Format: "<prefix>-NNN", zero-padded to three digits; larger numbers
    simply grow (WD-1000).

    Examples:
        format_serial_no(1)   -> "WD-001"
        format_serial_no(42)  -> "WD-042"
        format_serial_no(1000) -> "WD-1000"
    """
    return f"{prefix}-{sequence:03d}"


def build_qr_code_url(serial_no: str, template: str) -> str:
    """
    QR code image URL for a serial number.

    The image itself is rendered by the third-party service the template
    points at; we only fill in `{serial_no}`.
    """
    return template.format(serial_no=quote(serial_no, safe=""))
