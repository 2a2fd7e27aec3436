"""Helper utilities used to describe discovered URLs."""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup


def extract_path(url: str) -> str:
    try:
        return urlsplit(url).path or "/"
    except ValueError:
        return "/"


def extract_query(url: str) -> str:
    try:
        return urlsplit(url).query
    except ValueError:
        return ""


def extract_subdomain(host: Optional[str]) -> str:
    """First label of hosts with three or more labels (``www.example.com`` -> ``www``)."""

    if not host:
        return ""
    parts = host.split(".")
    return parts[0] if len(parts) >= 3 else ""


def extract_title(html: Optional[str]) -> str:
    if not html or not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None or soup.title.string is None:
        return ""
    return soup.title.string.strip()


def resolve_ip(host: str) -> str:
    """Resolves ``host`` to an address, ``""`` when resolution fails."""

    if not host:
        return ""
    try:
        return socket.gethostbyname(host.strip("[]"))
    except (OSError, UnicodeError):
        return ""


def is_internal_ip(ip: Optional[str]) -> bool:
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local


def classify_host(host: str, resolver=resolve_ip) -> Tuple[str, bool]:
    """Returns ``(ip, is_internal)``; failures yield ``("", False)``."""

    try:
        ip = resolver(host) or ""
    except Exception:
        return "", False
    return ip, is_internal_ip(ip)


def append_segment(base_url: str, segment: str) -> str:
    """Joins ``segment`` to ``base_url`` with exactly one slash between them."""

    return base_url + segment if base_url.endswith("/") else f"{base_url}/{segment}"
