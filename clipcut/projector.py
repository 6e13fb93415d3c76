"""Projection of pipeline status onto the visible UI regions.

Every projection starts from all regions hidden and shows exactly the one
implied by the status, so two regions are never visible together.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Union


class Region(Enum):
    """Status regions of the interface."""
    PROGRESS = "progress"
    DOWNLOAD = "download"
    ERROR = "error"


class UiStatus(str, Enum):
    """Statuses exposed to the user."""
    LOADING = "loading"
    READY = "ready"
    DONE = "done"
    ERROR = "error"


_REGION_FOR_STATUS = {
    UiStatus.LOADING: Region.PROGRESS,
    UiStatus.READY: Region.PROGRESS,
    UiStatus.DONE: Region.DOWNLOAD,
    UiStatus.ERROR: Region.ERROR,
}


@dataclass(frozen=True)
class ViewState:
    """What the interface shows after a status change."""
    status: UiStatus
    message: str
    progress: int
    visible: FrozenSet[Region]
    error_message: Optional[str] = None


def project(status: Union[UiStatus, str], message: str = "", progress: float = 0) -> ViewState:
    """Map a status, message and progress percentage to a view.

    Raises:
        ValueError: If status is not one of loading, ready, done or error
    """
    status = UiStatus(status)
    percent = int(min(100, max(0, progress or 0)))
    region = _REGION_FOR_STATUS[status]
    return ViewState(
        status=status,
        message=message,
        progress=percent,
        visible=frozenset({region}),
        error_message=message if region is Region.ERROR else None,
    )
