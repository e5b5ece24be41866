"""tabletify - Headless table engine.

This package provides the state and algorithms behind an interactive data
table: filtering, sorting, grouping and paging, row and cell-range
selection, column layout, row reordering, inline editing, keyboard
navigation and header callouts. Rendering is left to the host.
"""

from .callout import CalloutCoordinator
from .cell_range import CellRangeSelector
from .clipboard import ClipboardBuffer, parse_tsv, to_tsv
from .columns import ColumnManager
from .config import (
    CalloutSettings,
    CellSelectionSettings,
    ColumnSettings,
    EditSettings,
    LogSettings,
    NavigationSettings,
    PaginationSettings,
    RowReorderSettings,
    SelectionSettings,
    TabletifySettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from .editing import EditSession, SaveStatus
from .engine import TableEngine
from .exceptions import (
    AsyncCommitFailure,
    CellValidationError,
    ConfigurationError,
    OutOfRangeRequest,
    TabletifyException,
)
from .models import (
    CellPosition,
    CellRange,
    CellRangeInfo,
    Column,
    ColumnDragState,
    ColumnLayout,
    EditState,
    FilterState,
    Group,
    GroupState,
    PageState,
    PipelineResult,
    RowDragState,
    SelectionState,
    SortState,
)
from .navigation import KeyboardNavigator, NavAction
from .observer import CallbackObserver, Notifier, TableObserver
from .pipeline import DataPipeline, compute_view, infer_columns, normalize_rows
from .row_reorder import RowReorderManager
from .selection import SelectionManager


__version__ = "1.0.0"

__all__ = [
    # Engine
    "TableEngine",
    # Components
    "CalloutCoordinator",
    "CellRangeSelector",
    "ClipboardBuffer",
    "ColumnManager",
    "DataPipeline",
    "EditSession",
    "KeyboardNavigator",
    "RowReorderManager",
    "SelectionManager",
    # Observer
    "CallbackObserver",
    "Notifier",
    "TableObserver",
    # Models
    "CellPosition",
    "CellRange",
    "CellRangeInfo",
    "Column",
    "ColumnDragState",
    "ColumnLayout",
    "EditState",
    "FilterState",
    "Group",
    "GroupState",
    "NavAction",
    "PageState",
    "PipelineResult",
    "RowDragState",
    "SaveStatus",
    "SelectionState",
    "SortState",
    # Functions
    "compute_view",
    "infer_columns",
    "normalize_rows",
    "parse_tsv",
    "to_tsv",
    # Configuration
    "CalloutSettings",
    "CellSelectionSettings",
    "ColumnSettings",
    "EditSettings",
    "LogSettings",
    "NavigationSettings",
    "PaginationSettings",
    "RowReorderSettings",
    "SelectionSettings",
    "TabletifySettings",
    "clear_settings",
    "get_settings",
    "reload_settings",
    # Exceptions
    "AsyncCommitFailure",
    "CellValidationError",
    "ConfigurationError",
    "OutOfRangeRequest",
    "TabletifyException",
    "__version__",
]
