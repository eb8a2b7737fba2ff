"""
Log Masking
===========
Redaction helpers so identities never reach logs in clear.
"""


def mask_email(email: str) -> str:
    """
    Mask an email address for safe logging.

    Args:
        email: Full email address

    Returns:
        Masked address (e.g., "j***@example.com")
    """
    if not email or "@" not in email:
        return "****"

    local, domain = email.strip().rsplit("@", 1)
    if not local:
        return f"***@{domain}"
    return f"{local[0]}***@{domain}"


def mask_ip(ip: str) -> str:
    """Keep the network part of an IPv4 address, hide the host octet."""
    if not ip:
        return "unknown"
    parts = ip.split(".")
    if len(parts) == 4:
        return ".".join(parts[:3] + ["x"])
    return ip.split(":")[0] + ":****"
