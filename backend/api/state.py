"""
Shared API state - the layout session polled by the renderer.
Initialized by main.py after creating the app.
"""

from typing import Optional

from visualization import LayoutSession

# Set by main.py
layout_session: Optional[LayoutSession] = None


def init_api_state(session: LayoutSession):
    global layout_session
    layout_session = session
