import os
import json
import time
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Iterable, List, Optional

import yaml
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError

# ---------- Timing ----------

def elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)

# ---------- Line I/O ----------

def read_lines(path: str, encoding: str = "utf-8") -> List[str]:
    """Read a file into a list of lines without their terminators.

    Lines that cannot be decoded are skipped rather than failing the read;
    errors opening or reading the file itself propagate to the caller.
    """
    lines: List[str] = []
    dropped = 0
    with open(path, "rb") as f:
        for raw in f:
            if raw.endswith(b"\n"):
                raw = raw[:-1]
                if raw.endswith(b"\r"):
                    raw = raw[:-1]
            try:
                lines.append(raw.decode(encoding))
            except UnicodeDecodeError:
                dropped += 1
    if dropped:
        get_logger(__name__).info("read.lines: dropped=%d undecodable lines path=%s", dropped, path)
    return lines

def write_lines(lines: Iterable[str], path: str, encoding: str = "utf-8") -> None:
    """Write one element per line, replacing any existing file content."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding=encoding, newline="\n") as f:
        for line in lines:
            f.write(f"{line}\n")

# ---------- Config ----------

DEFAULT_CONFIG = {
    "dedup": {
        "input_thoroughness": 20,
        "merge_thoroughness": 1,
        "threshold_percent": 10,
        "max_workers": None,
        "eager_rebuild": False,
    },
    "io": {"encoding": "utf-8"},
    "output": {"report": None},
}

def load_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def validate_config(cfg: dict):
    here = os.path.dirname(os.path.abspath(__file__))
    schema_path = os.path.join(here, "schemas", "config.schema.json")
    schema = json.loads(load_file(schema_path))
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ValueError(f"Config validation error: {e.message} at {list(e.path)}") from e

def with_defaults(cfg: Optional[dict]) -> dict:
    """Return a copy of ``cfg`` with every missing section/key filled in."""
    merged = {}
    cfg = cfg or {}
    for section, defaults in DEFAULT_CONFIG.items():
        merged[section] = dict(defaults)
        merged[section].update(cfg.get(section) or {})
    return merged

def load_config(path: Optional[str] = None) -> dict:
    """Load and validate a YAML config; ``None`` yields the defaults."""
    cfg = {}
    if path:
        cfg = yaml.safe_load(load_file(path)) or {}
    validate_config(cfg)
    return with_defaults(cfg)

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    # Default to a local, writable logs directory
    log_dir = os.getenv("LOG_DIR", "logs")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    ch = logging.StreamHandler()
    ch.setLevel(logger.level)

    fh = TimedRotatingFileHandler(os.path.join(log_dir, "zipmerge.log"), when="D", backupCount=7, encoding="utf-8")
    fh.setLevel(logger.level)

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    ch.setFormatter(fmt)
    fh.setFormatter(fmt)
    logger.addHandler(ch)
    logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: str = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)
