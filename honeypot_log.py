import threading
from datetime import datetime, timezone
from typing import Optional

_LOG_FILE_PATH: Optional[str] = None
_LOG_LOCK = threading.Lock()


def set_log_file(path: Optional[str]) -> None:
    """Point the file mirror at ``path``; ``None`` keeps logging on stdout only."""
    global _LOG_FILE_PATH
    _LOG_FILE_PATH = path


def log(message: str, level: str = "INFO", source: str = "FTP") -> None:
    ts = datetime.now(timezone.utc).replace(tzinfo=None).isoformat()
    line = f"[{ts}Z] [{level}] [{source}] {message}"
    if level == "WARNING":
        print(f"\033[93m{line}\033[0m")
    elif level == "ALERT":
        print(f"\033[91m{line}\033[0m")
    else:
        print(line)
    path = _LOG_FILE_PATH
    if path is None:
        return
    try:
        with _LOG_LOCK:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
    except OSError:
        pass
