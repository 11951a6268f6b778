"""
API module - routes and schemas.
Graph routes serve positioned nodes and routed edges to the canvas renderer.
"""

from .routes import register_routes

__all__ = ["register_routes"]
