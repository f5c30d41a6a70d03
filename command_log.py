import json
import threading
from datetime import datetime
from typing import Any, Dict

from honeypot_log import log


class CommandLog:
    """Append-only JSON-lines record of every command a client sends.

    Sessions share one instance; each append is serialized behind a lock so
    lines from concurrent sessions never interleave.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def record(self, ip: str, command: str, argument: str, cwd: str) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
            "ip": ip,
            "command": command,
        }
        if argument:
            entry["argument"] = argument
        entry["cwd"] = cwd
        try:
            with self._lock:
                with open(self.path, "a", encoding="utf-8") as f:
                    json.dump(entry, f)
                    f.write("\n")
        except OSError as e:
            log(f"Error recording command {command} from {ip}: {e}", level="WARNING")
