from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Wall-clock source for the facet cache.

    Staleness is measured as `now() - loaded_at`, so tests drive expiry by
    advancing a fake clock instead of sleeping.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware UTC datetime."""
        ...
