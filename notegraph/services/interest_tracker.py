"""
Per-user topic interest tracking.

Every note a user authors adds a fixed weight to the user's interest in each
of the note's topics. Two scores are kept per (user, topic):

- aggregate_score: grows by the weight, never decays
- memory_score: grows by the weight, but all of the user's positive memory
  scores first decay by `memory_decay`, so it favours recent topics.
  Notes without topics do not decay anything.
"""

from notegraph.config import Config
from notegraph.core.record_store.base import RecordStore
from notegraph.models.interest import InterestScore, TopicInterest
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)


class InterestTracker:
    """Updates and reads user interest scores."""

    def __init__(self, record_store: RecordStore, config: Config):
        self.record_store = record_store
        self.increment = config.indexing.interest_increment
        self.memory_decay = config.indexing.memory_decay

    async def update_user_interests(
        self, user_id: str, topic_ids: list[str], weight: float | None = None
    ) -> list[InterestScore]:
        """
        Decay the user's memory scores, then add weight to each topic.

        A note without topics leaves the user's scores untouched.

        Args:
            user_id: User whose interests change
            topic_ids: Topics touched by the user's note (duplicates ignored)
            weight: Increment per topic (default: configured interest_increment)

        Returns:
            Updated interest rows, one per distinct topic

        Raises:
            RecordStoreError: If the store rejects a write
        """
        if not topic_ids:
            return []

        weight = self.increment if weight is None else weight

        await self.record_store.decay_interests(user_id, self.memory_decay)

        updated = []
        for topic_id in dict.fromkeys(topic_ids):
            updated.append(await self.record_store.add_interest(user_id, topic_id, weight))
        return updated

    async def track(self, user_id: str, topic_ids: list[str]) -> bool:
        """
        Record an authored note's topics without ever raising.

        Returns:
            True if the scores were updated
        """
        try:
            await self.update_user_interests(user_id, topic_ids)
        except Exception as e:
            logger.error(
                f"Interest tracking failed: {e}",
                extra={
                    "user_id": user_id,
                    "topics": len(topic_ids),
                    "error_type": type(e).__name__,
                },
            )
            return False

        logger.debug(f"Updated interests for {user_id}", extra={"topics": len(topic_ids)})
        return True

    async def get_top_interests(self, user_id: str, limit: int = 5) -> list[TopicInterest]:
        """
        The user's top topics by memory score.

        Rows whose topic no longer exists are skipped.
        """
        interests = await self.record_store.list_interests(user_id, limit=limit)

        result = []
        for interest in interests:
            topic = await self.record_store.get_entity(interest.topic_id)
            if topic is None:
                continue
            result.append(
                TopicInterest(
                    topic=topic,
                    memory_score=interest.memory_score,
                    aggregate_score=interest.aggregate_score,
                )
            )
        return result
