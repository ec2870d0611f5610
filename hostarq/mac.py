"""Conversion between textual and binary Ethernet addresses."""

__all__ = ["parse_mac", "format_mac"]


def parse_mac(text: str) -> bytes:
    """Parse a colon-separated hexadecimal address such as ``02:00:5e:10:00:01``."""
    octets = []
    for token in filter(None, text.split(":")):
        try:
            value = int(token, 16)
        except ValueError:
            raise ValueError(f"invalid address component {token!r}") from None
        if not 0 <= value <= 0xFF:
            raise ValueError(f"address component {token!r} out of range")
        octets.append(value)
    return bytes(octets)


def format_mac(prefix: str, mac: bytes) -> str:
    """Render the first six bytes of ``mac`` as ``prefix: xx:xx:xx:xx:xx:xx``."""
    if len(mac) < 6:
        raise ValueError("an Ethernet address needs six bytes")
    return f"{prefix}: " + ":".join(f"{octet:02x}" for octet in mac[:6])