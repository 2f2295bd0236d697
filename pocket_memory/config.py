"""Environment-driven configuration for the memory layer."""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from pocket_memory.interfaces import MemoryManagerConfig

ENV_PREFIX = "POCKET_MEMORY_"

_INT_FIELDS = ("embedding_dim", "recall_limit", "capture_max_chars")
_FLOAT_FIELDS = ("recall_min_score", "dup_threshold")
_BOOL_FIELDS = ("auto_recall", "auto_capture")
_STR_FIELDS = ("db_path", "agent_id")


def _bool_from_env(name: str, default: str = "1") -> bool:
    """Parse boolean from environment variable."""
    value = os.environ.get(name, default).strip().lower()
    return value not in {"0", "false", "no", "off"}


def load_config_from_env(
    prefix: str = ENV_PREFIX,
    dotenv_path: Optional[str] = None,
    **overrides: Any,
) -> MemoryManagerConfig:
    """Build a MemoryManagerConfig from ``.env`` and the environment.

    Variables are the upper-cased field names with ``prefix``
    (``POCKET_MEMORY_RECALL_LIMIT=5``). The API key is also read from a plain
    ``OPENAI_API_KEY``. Keyword overrides win over the environment.
    """
    load_dotenv(dotenv_path)

    values: Dict[str, Any] = {}
    for name in _INT_FIELDS + _FLOAT_FIELDS + _STR_FIELDS:
        raw = os.environ.get(f"{prefix}{name.upper()}")
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    for name in _BOOL_FIELDS:
        if f"{prefix}{name.upper()}" in os.environ:
            values[name] = _bool_from_env(f"{prefix}{name.upper()}")

    api_key = os.environ.get(f"{prefix}OPENAI_API_KEY") or os.environ.get("OPENAI_API_KEY")
    if api_key:
        values["openai_api_key"] = api_key

    values.update(overrides)
    return MemoryManagerConfig(**values)
