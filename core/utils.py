from __future__ import annotations

import ipaddress

from django.http import HttpRequest


def _valid_ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def get_client_ip(request: HttpRequest) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        first = _valid_ip(forwarded.split(",")[0])
        if first:
            return first
    return _valid_ip(request.META.get("HTTP_X_REAL_IP")) or _valid_ip(request.META.get("REMOTE_ADDR"))
