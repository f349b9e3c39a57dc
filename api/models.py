"""
Pydantic models for API request and response schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


#######################################################################
## Request Models
#######################################################################

class ExecuteBlockRequest(BaseModel):
    """Request model for running one chat block."""
    path: str = Field(..., min_length=1, description="Document path relative to the data root")
    position: Optional[int] = Field(None, ge=0, description="Character offset inside the block")
    name: Optional[str] = Field(None, description="Block @name (takes precedence over position)")


class SessionHistoryRequest(BaseModel):
    """Request model for previewing a session's reconstructed history."""
    path: str = Field(..., min_length=1, description="Document path relative to the data root")
    session: str = Field(..., min_length=1, description="Session identifier")
    position: int = Field(..., ge=0, description="Only blocks starting before this offset are used")


#######################################################################
## Response Models
#######################################################################

class BlockInfo(BaseModel):
    """Summary of a chat block."""
    start: int = Field(..., description="Offset of the opening fence")
    end: int = Field(..., description="Offset after the result region")
    name: Optional[str] = Field(None, description="Block @name")
    parameters: Dict[str, Optional[str]] = Field(default_factory=dict, description="Block parameters")
    body: Optional[str] = Field(None, description="Block body")
    result: Optional[str] = Field(None, description="Result region content")
    pending: bool = Field(False, description="Whether the result is an unresolved pending-response token")


class BlockListResponse(BaseModel):
    """Response model for listing the blocks of a document."""
    path: str
    blocks: List[BlockInfo] = Field(default_factory=list)


class ExecuteBlockResponse(BaseModel):
    """Response model for block execution."""
    success: bool = True
    path: str = Field(..., description="Document path relative to the data root")
    block_start: int = Field(..., description="Offset of the executed block")
    result: str = Field(..., description="Pending token, or the rendered payload for dry runs")
    token: Optional[str] = Field(None, description="Pending token, None for dry runs")
    dry_run: bool = Field(False, description="Whether the payload was rendered instead of sent")


class SessionHistoryResponse(BaseModel):
    """Response model for a session history preview."""
    session: str
    messages: List[Optional[str]] = Field(default_factory=list, description="Alternating user/assistant turns")


class ConfigurationIssueInfo(BaseModel):
    """Configuration issue surfaced to the API."""

    name: str = Field(..., description="Identifier for the issue (e.g., backend:openai)")
    message: str = Field(..., description="Human-readable description of the issue")
    severity: str = Field(..., description="Issue severity (error or warning)")


class ConfigurationStatusInfo(BaseModel):
    """Aggregated configuration health information for API clients."""

    issues: List[ConfigurationIssueInfo] = Field(default_factory=list, description="Configuration issues discovered during validation")
    tool_availability: Dict[str, bool] = Field(default_factory=dict, description="Tool availability keyed by tool name")
    backend_availability: Dict[str, bool] = Field(default_factory=dict, description="Backend availability keyed by backend name")


class SystemInfo(BaseModel):
    """Information about system health."""
    startup_time: datetime = Field(..., description="When the runtime was bootstrapped")
    data_root: str = Field(..., description="Root directory for documents")
    pending_requests: int = Field(0, description="Requests still waiting for a response")


class StatusResponse(BaseModel):
    """Response model for system status endpoint."""

    system: SystemInfo
    backends: List[str] = Field(default_factory=list, description="Configured backends")
    tools: List[str] = Field(default_factory=list, description="Configured tools")
    presets: List[str] = Field(default_factory=list, description="Configured presets")
    parameters: List[str] = Field(default_factory=list, description="Recognized block parameters")
    configuration_status: ConfigurationStatusInfo = Field(default_factory=ConfigurationStatusInfo)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict] = Field(None, description="Additional error details")
