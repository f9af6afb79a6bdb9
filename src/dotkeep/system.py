"""Identity of the machine dotkeep is running on."""

import getpass
import logging
import os
import platform
import socket
from pathlib import Path

logger = logging.getLogger(__name__)


class Environment:
    """Detects and provides info about the current system environment.

    ``system``, ``host`` and ``user`` are the three tokens alternate files
    are matched against (``uname -s``, ``hostname -s``, ``id -u -n``).
    """

    def __init__(self):
        self.home = Path.home()
        self.system = platform.system()
        self.host = self._short_hostname()
        self.user = self._username()

    def _short_hostname(self) -> str:
        return socket.gethostname().split(".")[0]

    def _username(self) -> str:
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return (
                os.environ.get("USER")
                or os.environ.get("LOGNAME")
                or self.home.name
            )

    def __repr__(self) -> str:
        return (
            f"Environment(system={self.system}, host={self.host}, "
            f"user={self.user}, home={self.home})"
        )
