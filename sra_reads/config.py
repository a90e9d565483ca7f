from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class Layout(str, Enum):
    SINGLE = 'SINGLE'
    PAIRED = 'PAIRED'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def from_text(cls, text):
        """Map a free-text layout field ('paired', 'SINGLE', ...) to a Layout"""
        value = (text or '').strip().lower()
        if value == 'paired':
            return cls.PAIRED
        if value == 'single':
            return cls.SINGLE
        return cls.UNKNOWN


# What to do with a run whose layout could not be resolved
UNKNOWN_LAYOUT_POLICIES = ('single', 'paired', 'fail')

DEFAULT_CHUNK_SIZE = 350
DEFAULT_SLEEP_SECS = 1


@dataclass(frozen=True)
class Config:
    outdir: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE
    sleep_secs: int = DEFAULT_SLEEP_SECS
    forced_layout: Optional[Layout] = None
    unknown_layout: str = 'single'
    email: Optional[str] = None
    api_key: Optional[str] = None
    cleanup: bool = False

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValueError(f"chunk size must be positive, got {self.chunk_size}")
        if self.sleep_secs < 0:
            raise ValueError(f"sleep seconds must not be negative, got {self.sleep_secs}")
        if self.forced_layout is Layout.UNKNOWN:
            raise ValueError("forced layout must be SINGLE or PAIRED")
        if self.unknown_layout not in UNKNOWN_LAYOUT_POLICIES:
            raise ValueError(f"unknown layout policy must be one of {', '.join(UNKNOWN_LAYOUT_POLICIES)}")
