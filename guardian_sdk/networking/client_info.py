"""
Client identification headers sent with every Guardian API call.
"""

import platform
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .. import __version__
from ..util.encoding import safe_json_encode, url_safe_encode


SDK_NAME = "Guardian.Python"
USER_AGENT_PRODUCT = "GuardianSDK"


@dataclass(frozen=True)
class ClientInfo:
    """Library and host application descriptor for the ``Auth0-Client`` header."""
    name: str = SDK_NAME
    version: str = __version__
    app_name: Optional[str] = None
    app_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {'name': self.name, 'version': self.version}
        env = {}
        if self.app_name:
            env['appName'] = self.app_name
        if self.app_version:
            env['appVersion'] = self.app_version
        if env:
            info['env'] = env
        return info

    def to_header(self) -> str:
        """Base64URL JSON form."""
        return url_safe_encode(safe_json_encode(self.to_dict()))

    def user_agent(self) -> str:
        ua = f"{USER_AGENT_PRODUCT}/{self.version} Python/{platform.python_version()}"
        if self.app_name:
            ua += f" {self.app_name}"
            if self.app_version:
                ua += f"/{self.app_version}"
        return ua
