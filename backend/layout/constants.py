"""
Shared layout constants for the rank (tree) layout and the layered layout.
Each value can be overridden through a QUERYGRAPH_* environment variable.
"""

import os


def _float_env(name: str, default: float) -> float:
    v = os.environ.get(name)
    return float(v) if v is not None else default


def _int_env(name: str, default: int) -> int:
    v = os.environ.get(name)
    return int(v) if v is not None else default


# Rank layout: vertical distance per depth, horizontal span per leaf
VERTICAL_SPACING = _float_env("QUERYGRAPH_VERTICAL_SPACING", 180)
MIN_HORIZONTAL_SPACING = _float_env("QUERYGRAPH_MIN_HORIZONTAL_SPACING", 320)

# Node box (shared by both strategies)
DEFAULT_NODE_W = _float_env("QUERYGRAPH_NODE_W", 240)
DEFAULT_NODE_H = _float_env("QUERYGRAPH_NODE_H", 120)

# Layered layout: sibling separation and layer (rank) separation
DEFAULT_NODE_SEP = _float_env("QUERYGRAPH_NODE_SEP", 60)
DEFAULT_RANK_SEP = _float_env("QUERYGRAPH_RANK_SEP", 80)

# Length of the straight stub an orthogonal route takes out of a port
PORT_MARGIN = _float_env("QUERYGRAPH_PORT_MARGIN", 20)

CROSSING_PASSES = _int_env("QUERYGRAPH_CROSSING_PASSES", 30)

# "ranks" or "layered"
DEFAULT_STRATEGY = os.environ.get("QUERYGRAPH_DEFAULT_STRATEGY", "ranks")

# Canvas padding around layered results
DEFAULT_PADDING = _float_env("QUERYGRAPH_PADDING", 24)
