import json
import logging
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a console handler."""
    root = logging.getLogger()
    if root.handlers:
        # Already configured (tests, repeated create_app calls, uvicorn)
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)


def format_access_line(
    method: str,
    url: str,
    status_code: int,
    content_length: Optional[str],
    elapsed_ms: float,
) -> str:
    """One access log line: ``METHOD URL STATUS LENGTH - ELAPSED ms``."""
    return f"{method} {url} {status_code} {content_length or '-'} - {elapsed_ms:.3f} ms"


class RequestLogger:
    """Logger for saving request/response pairs to a JSONL file."""

    def __init__(self, log_dir: str):
        self.log_dir = Path(log_dir)
        self.log_file = self.log_dir / "requests.jsonl"

    def log_request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any,
        status_code: int,
        elapsed_ms: float = None,
    ):
        """Append one request entry to the JSONL file."""
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "method": method,
            "url": url,
            "headers": headers,
            "body": body,
            "status_code": status_code,
            "elapsed_ms": elapsed_ms,
        }

        self.log_dir.mkdir(parents=True, exist_ok=True)
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")


def decode_body(raw: bytes) -> Any:
    """Best-effort view of a request body for the request log."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw.decode("utf-8", errors="replace")
