"""
Portfolio model.

Portfolios decide who an atomic knowledge record is visible to. Every user
has one human portfolio; project portfolios group notes by project.
"""

from enum import Enum

from pydantic import BaseModel, Field


class PortfolioType(str, Enum):
    """Kind of portfolio."""

    HUMAN = "human"
    PROJECTS = "projects"


class Portfolio(BaseModel):
    """Human or project portfolio owned by a user."""

    id: str = Field(..., description="Portfolio ID")
    type: PortfolioType = Field(..., description="Portfolio kind")
    user_id: str = Field(..., description="Owner user ID")
    name: str | None = Field(default=None, description="Display name")
