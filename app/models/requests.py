import ipaddress
import re
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

BLOCKED_HOSTNAMES = {
    "localhost",
    "metadata",
    "metadata.google.internal",
    "kubernetes.default",
    "kubernetes.default.svc",
}

BLOCKED_SUFFIXES = (".internal", ".local", ".localhost")

NUMERIC_LABEL = re.compile(r"^(0x[0-9a-f]*|\d+)$")


def _is_blocked_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_unspecified or ip.is_reserved


def _is_encoded_ip(hostname: str) -> bool:
    # Decimal (2130706433), octal (0177.0.0.1) or hex (0x7f000001) hosts
    if not all(NUMERIC_LABEL.match(label) for label in hostname.split(".")):
        return False
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return True
    return False


class ImageElementsOptions(BaseModel):
    maxElements: int = Field(default=500, ge=1, le=2000)


class ImageElementsRequest(BaseModel):
    url: str
    options: Optional[ImageElementsOptions] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError("Only http and https URLs are allowed")
        if parsed.username or parsed.password:
            raise ValueError("URLs with embedded credentials are not allowed")

        hostname = (parsed.hostname or "").lower()
        if not hostname:
            raise ValueError("URL has no host")
        if hostname in BLOCKED_HOSTNAMES or hostname.endswith(BLOCKED_SUFFIXES):
            raise ValueError("Access to internal resources is not allowed")
        if _is_blocked_ip(hostname):
            raise ValueError("Access to private addresses is not allowed")
        if _is_encoded_ip(hostname):
            raise ValueError("Numeric host encodings are not allowed")
        return v
