from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

_PLACEHOLDER_MARKERS = ("placeholder", "changeme", "your-key")


def is_real_key(value: Optional[str]) -> bool:
    """False for empty keys and obvious template values left in .env files."""
    if not value or not value.strip():
        return False
    low = value.strip().lower()
    return not any(marker in low for marker in _PLACEHOLDER_MARKERS)


@dataclass
class LLMConfig:
    """Connection settings for one model backend."""

    model: str
    provider: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    temperature: float = 0.7
    max_tokens: Optional[int] = None
    timeout: float = 60.0
    max_retries: int = 2

    # Provider-specific settings passed through to the builder
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.provider) and is_real_key(self.api_key)

    def to_dict(self) -> Dict[str, Any]:
        """Builder input for LLMRegistry.build(); None values are dropped."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def __repr__(self) -> str:
        return (
            f"LLMConfig(provider={self.provider!r}, model={self.model!r}, "
            f"api_key={'***' if self.api_key else None})"
        )
