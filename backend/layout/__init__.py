"""Layout module - rank (tree) layout and layered/ported layout for canonical graphs."""

from .layered import LayoutEngine, LayoutEngineError, build_layout_spec, compute_layered_layout
from .metrics import compute_subtree_weights, subtree_weight
from .result import LayoutResult
from .sugiyama import SugiyamaEngine
from .tree_layout import compute_rank_layout

__all__ = [
    "LayoutEngine",
    "LayoutEngineError",
    "LayoutResult",
    "SugiyamaEngine",
    "build_layout_spec",
    "compute_layered_layout",
    "compute_rank_layout",
    "compute_subtree_weights",
    "subtree_weight",
]
