"""Logic for fingerprinting the configuration an audit ran with."""

import hashlib
import json
from typing import Any

# Sections that do not change what the audit finds.
_NON_SEMANTIC_KEYS = frozenset({"logging"})


def compute_config_hash(config: dict[str, Any]) -> str:
    """Return a stable SHA-256 of the settings that affect the audit result.

    Keys are sorted before hashing, so dictionary order does not matter.
    """
    relevant = {k: v for k, v in config.items() if k not in _NON_SEMANTIC_KEYS}
    canonical = json.dumps(relevant, sort_keys=True, ensure_ascii=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
