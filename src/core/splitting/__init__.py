"""Line-balanced byte-range splitting of large text files."""

from .boundary import BoundaryConvention, adjust_for_reader_skip, get_convention
from .engine import SplitEngine, collect_input_files
from .line_counter import LineCounter
from .split_planner import SplitPlanner, compute_boundaries, compute_lines_per_split, plan_splits

__all__ = [
    "BoundaryConvention",
    "LineCounter",
    "SplitEngine",
    "SplitPlanner",
    "adjust_for_reader_skip",
    "collect_input_files",
    "compute_boundaries",
    "compute_lines_per_split",
    "get_convention",
    "plan_splits",
]
