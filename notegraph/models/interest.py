"""
Per-user topic interest model.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from notegraph.models.knowledge import KnowledgeEntity


class InterestScore(BaseModel):
    """
    Interest of one user in one topic.

    aggregate_score only ever grows by the configured increment;
    memory_score grows the same way but decays on every update so it
    tracks recent activity.
    """

    user_id: str = Field(..., description="User ID")
    topic_id: str = Field(..., description="Topic ID")
    aggregate_score: float = Field(default=0.0, description="Accumulated interest")
    memory_score: float = Field(default=0.0, description="Decaying recent interest")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")


class TopicInterest(BaseModel):
    """A topic with the user's interest in it."""

    topic: KnowledgeEntity = Field(..., description="The topic")
    memory_score: float = Field(default=0.0, description="Decaying recent interest")
    aggregate_score: float = Field(default=0.0, description="Accumulated interest")
