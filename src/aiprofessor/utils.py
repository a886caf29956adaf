from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def client_ip(forwarded_for: str | None, real_ip: str | None, peer: str | None) -> str:
    """Resolve the originating client IP: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    if real_ip:
        return real_ip.strip()
    return peer or "unknown"
