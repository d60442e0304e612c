"""
JSON (de)serialization of request and response bodies.
"""

import json
from typing import Any, Union

from ..util.encoding import safe_json_encode


class JsonSerializer:
    """Stateless JSON serializer injected into every request."""

    content_type = "application/json; charset=utf-8"

    def serialize(self, data: Any) -> bytes:
        return safe_json_encode(data).encode('utf-8')

    def deserialize(self, data: Union[bytes, str]) -> Any:
        """
        Decode a response body.

        Raises:
            ValueError: if the body is not valid UTF-8 JSON
        """
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        return json.loads(data)
