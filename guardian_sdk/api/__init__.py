# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Guardian API endpoints.
"""

from .client import GuardianAPIClient, create_push_credentials
from .consents import RichConsentsAPIClient
from .device import DeviceAPIClient
from .enroll import create_enrollment

__all__ = [
    "GuardianAPIClient",
    "RichConsentsAPIClient",
    "DeviceAPIClient",
    "create_enrollment",
    "create_push_credentials",
]
