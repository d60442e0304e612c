# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Request execution: HTTP transport, JSON serialization and the blocking and
callback based runners.
"""

from .client_info import ClientInfo
from .serializer import JsonSerializer
from .transport import HttpCall, HttpResponse, HttpTransport
from .request import (
    Callback,
    FunctionCallback,
    GuardianAPIRequest,
    PendingRequest,
    map_request,
    run_async,
    run_blocking,
)

__all__ = [
    "ClientInfo",
    "JsonSerializer",
    "HttpCall",
    "HttpResponse",
    "HttpTransport",
    "Callback",
    "FunctionCallback",
    "GuardianAPIRequest",
    "PendingRequest",
    "map_request",
    "run_async",
    "run_blocking",
]
