import json
import os
from typing import Optional, Tuple, Dict, Any

from ..core.interfaces import IMessageSource

MESSAGE_TYPES = ("tracker", "lighthouse", "light", "correction", "trigger")


class ReplaySource(IMessageSource):
    """
    Recorded message stream, one JSON object per line:
    {"type": "light", "tracker": ..., "lighthouse": ..., "axis": 0, "pulses": [...], "timestamp": ...}
    """

    def __init__(self, path: str):
        self.path = path
        self._file = None
        self._line_no = 0

    def open(self) -> bool:
        if not os.path.isfile(self.path):
            raise FileNotFoundError(self.path)
        self._file = open(self.path, "r", encoding="utf-8")
        self._line_no = 0
        return True

    def read_message(self) -> Optional[Tuple[str, Dict[str, Any]]]:
        if self._file is None:
            return None
        for line in self._file:
            self._line_no += 1
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                msg = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{self.path}:{self._line_no}: {e}") from e
            kind = msg.pop("type", None)
            if kind not in MESSAGE_TYPES:
                raise ValueError(f"{self.path}:{self._line_no}: unknown message type {kind!r}")
            return kind, msg
        return None

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
