from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class PrivateOperationHooks:
    """
    Optional lifecycle callbacks for donation, withdrawal and history flows.

    Parameters:
    - on_operation_succeeded: callback with operation kind (`donation`/`withdrawal`).
    - on_operation_failed: callback with `(kind, error_code)` for terminal errors.
    - on_linkage_failed: callback with operation kind when campaign linkage fails.
    - on_history_item_failed: callback invoked for every undecryptable history entry.

    Assumptions/Invariants:
    - Callbacks are lightweight and non-blocking.
    """

    on_operation_succeeded: Callable[[str], None] | None = None
    on_operation_failed: Callable[[str, str], None] | None = None
    on_linkage_failed: Callable[[str], None] | None = None
    on_history_item_failed: Callable[[], None] | None = None
