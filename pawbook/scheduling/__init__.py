from pawbook.scheduling.calendar import build_month_calendar, month_snapshots
from pawbook.scheduling.conflicts import is_time_slot_available
from pawbook.scheduling.multi_unit import MultiUnitSelection, calculate_multi_unit_price

__all__ = [
    "build_month_calendar",
    "month_snapshots",
    "is_time_slot_available",
    "MultiUnitSelection",
    "calculate_multi_unit_price",
]
