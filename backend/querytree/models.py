"""Pydantic models for query repository payloads (camelCase on the wire)."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DomainTreeNode(BaseModel):
    """One execution stage/operator. Children are owned by the parent."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    id: str
    query_id: Optional[str] = Field(default=None, alias="queryId")
    node_type: Optional[str] = Field(default=None, alias="nodeType")
    operator_type: Optional[str] = Field(default=None, alias="operatorType")
    source_system: Optional[str] = Field(default=None, alias="sourceSystem")
    state: Optional[str] = None
    execution_time: Optional[float] = Field(default=None, alias="executionTime")
    input_rows: Optional[int] = Field(default=None, alias="inputRows")
    output_rows: Optional[int] = Field(default=None, alias="outputRows")
    input_bytes: Optional[int] = Field(default=None, alias="inputBytes")
    output_bytes: Optional[int] = Field(default=None, alias="outputBytes")
    cpu_time: Optional[float] = Field(default=None, alias="cpuTime")
    wall_time: Optional[float] = Field(default=None, alias="wallTime")
    memory_bytes: Optional[int] = Field(default=None, alias="memoryBytes")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    warnings: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    children: List["DomainTreeNode"] = Field(default_factory=list)
    parent_id: Optional[str] = Field(default=None, alias="parentId")


class DomainEvent(BaseModel):
    """One lifecycle transition. List order is chronological order."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    query_id: Optional[str] = Field(default=None, alias="queryId")
    event_type: str = Field(default="", alias="eventType")
    timestamp: Optional[datetime] = None
    query: Optional[str] = None
    state: Optional[str] = None
    user: Optional[str] = None
    source: Optional[str] = None
    catalog: Optional[str] = None
    schema_name: Optional[str] = Field(default=None, alias="schema")
    execution_time: Optional[float] = Field(default=None, alias="executionTime")
    cpu_time_ms: Optional[float] = Field(default=None, alias="cpuTimeMs")
    wall_time_ms: Optional[float] = Field(default=None, alias="wallTimeMs")
    queued_time_ms: Optional[float] = Field(default=None, alias="queuedTimeMs")
    peak_memory_bytes: Optional[int] = Field(default=None, alias="peakMemoryBytes")
    total_bytes: Optional[int] = Field(default=None, alias="totalBytes")
    total_rows: Optional[int] = Field(default=None, alias="totalRows")
    completed_splits: Optional[int] = Field(default=None, alias="completedSplits")
    plan: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")


class QueryTree(BaseModel):
    """Envelope returned by the query repository for one query."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    query_id: Optional[str] = Field(default=None, alias="queryId")
    query: Optional[str] = None
    user: Optional[str] = None
    state: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    total_execution_time: Optional[float] = Field(default=None, alias="totalExecutionTime")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    root: Optional[DomainTreeNode] = None
    events: List[DomainEvent] = Field(default_factory=list)
