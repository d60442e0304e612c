"""
Configuration module for the Guardian SDK.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..util.config import get_bool_config, get_config_value, get_float_config, get_list_config
from ..util.url import (
    DEFAULT_FIRST_PARTY_HOST_PATTERNS,
    DEFAULT_PATH_SEGMENT,
    url_from_domain,
    validate_url,
)
from .types import DEFAULT_PUSH_SERVICE


DEFAULT_TIMEOUT = 30.0


@dataclass
class GuardianConfig:
    """Configuration for a Guardian instance. Set either ``url`` or ``domain``."""
    url: Optional[str] = None
    domain: Optional[str] = None
    app_name: Optional[str] = None
    app_version: Optional[str] = None
    logging_enabled: bool = False
    timeout: float = DEFAULT_TIMEOUT
    push_service: str = DEFAULT_PUSH_SERVICE
    path_segment: str = DEFAULT_PATH_SEGMENT
    first_party_host_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_FIRST_PARTY_HOST_PATTERNS))

    @classmethod
    def from_env(cls) -> "GuardianConfig":
        """Create configuration from GUARDIAN_* environment variables"""
        return cls(
            url=get_config_value("URL"),
            domain=get_config_value("DOMAIN"),
            app_name=get_config_value("APP_NAME"),
            app_version=get_config_value("APP_VERSION"),
            logging_enabled=get_bool_config("LOGGING_ENABLED", False),
            timeout=get_float_config("TIMEOUT", DEFAULT_TIMEOUT),
            push_service=get_config_value("PUSH_SERVICE", DEFAULT_PUSH_SERVICE),
            path_segment=get_config_value("PATH_SEGMENT", DEFAULT_PATH_SEGMENT),
            first_party_host_patterns=get_list_config(
                "FIRST_PARTY_HOST_PATTERNS", list(DEFAULT_FIRST_PARTY_HOST_PATTERNS)),
        )

    @property
    def base_url(self) -> str:
        """The configured URL, built from ``domain`` when only that is set."""
        if self.url:
            return self.url
        if self.domain:
            return url_from_domain(self.domain)
        raise ValueError("Either url or domain is required")

    def validate(self) -> bool:
        """Validate the configuration"""
        if self.url and self.domain:
            raise ValueError("Set either url or domain, not both")
        if not self.url and not self.domain:
            raise ValueError("Either url or domain is required")
        if self.url and not validate_url(self.url):
            raise ValueError(f"url must be an absolute http(s) URL: {self.url!r}")
        if self.domain and not validate_url(url_from_domain(self.domain)):
            raise ValueError(f"domain is not valid: {self.domain!r}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if not self.push_service:
            raise ValueError("push_service is required")
        if not self.path_segment or '/' in self.path_segment:
            raise ValueError("path_segment must be a single path component")
        return True
