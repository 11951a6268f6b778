"""Pydantic request schemas for API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from querytree import QueryTree


class GraphLayoutRequest(BaseModel):
    """Query tree from the query repository plus the layout strategy to use."""
    model_config = ConfigDict(populate_by_name=True)
    tree: QueryTree = Field(..., description="QueryTree envelope (root and/or events)")
    strategy: Optional[str] = Field(default=None, description="'ranks' or 'layered'")


class StatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    state: Optional[str] = None
