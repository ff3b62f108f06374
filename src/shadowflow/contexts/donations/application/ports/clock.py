from __future__ import annotations

from datetime import datetime
from typing import Protocol


class DonationsClock(Protocol):
    """
    DonationsClock — UTC time source for history timestamps and image retention.

    Related:
      - src/shadowflow/platform/time/system_clock.py
      - src/shadowflow/contexts/donations/application/services/campaign_image_index.py
    """

    def now(self) -> datetime:
        ...
