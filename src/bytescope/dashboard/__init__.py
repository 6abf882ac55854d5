"""
比较结果的图表数据与导出
"""

from bytescope.dashboard.comparison_data import (
    ComparisonDataAggregator,
    process_all,
)
from bytescope.dashboard.report_exporter import (
    ExportFormat,
    export_csv,
    export_json,
    export_to_file,
)

__all__ = [
    "ComparisonDataAggregator",
    "process_all",
    "ExportFormat",
    "export_csv",
    "export_json",
    "export_to_file",
]
