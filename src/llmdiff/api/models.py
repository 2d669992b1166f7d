"""Pydantic models for llmdiff API requests and responses."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class MinimizeRequest(BaseModel):
    """Request model for the minimize endpoint."""

    diff: str = Field(
        ...,
        description="Unified diff text, as produced by `git diff`",
        examples=["diff --git a/app.py b/app.py\n--- a/app.py\n+++ b/app.py\n@@ -1 +1 @@\n-a\n+b\n"],
    )
    changes_threshold: Optional[int] = Field(
        None,
        description="Summarize files with more changed lines than this",
        ge=1,
        le=1_000_000,
    )
    lines_threshold: Optional[int] = Field(
        None,
        description="Summarize files with more diff lines than this",
        ge=1,
        le=10_000_000,
    )
    max_empty_lines: Optional[int] = Field(
        None,
        description="Maximum consecutive empty lines kept in full diffs",
        ge=0,
        le=100,
    )
    max_keywords: Optional[int] = Field(
        None,
        description="Maximum keywords listed for a summarized file",
        ge=0,
        le=100,
    )

    @field_validator("diff")
    @classmethod
    def diff_must_not_be_blank(cls, v):
        """Reject requests without any diff content."""
        if not v.strip():
            raise ValueError("diff cannot be empty")
        return v


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    version: str = Field(..., examples=["1.0.0"])
    git_available: bool = Field(..., examples=[True])
    git_version: Optional[str] = Field(None, examples=["2.34.1"])
    thresholds: Dict[str, int] = Field(
        default_factory=dict,
        examples=[{"changed_lines": 100, "total_lines": 500}],
    )


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    keyword_strategies: List[str] = Field(default_factory=list, examples=[["go", "json", "python"]])
    supported_features: List[str] = Field(
        default_factory=lambda: [
            "blank_line_collapsing",
            "large_file_summaries",
            "keyword_extraction",
            "rename_detection",
            "binary_detection",
        ]
    )
