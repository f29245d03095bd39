from typing import Optional

from fastapi import Request


def get_client_ip(request: Optional[Request]) -> str:
    """Extract client IP address, honouring proxy headers"""
    if request is None:
        return "unknown"
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    if request.client:
        return request.client.host
    return "unknown"


def get_user_agent(request: Optional[Request]) -> str:
    if request is None:
        return "unknown"
    return request.headers.get("User-Agent", "unknown")
