"""
ID generation utilities for NoteGraph.

Provides consistent ID generation for all entity types:
- Notes: note_xxx
- Atomic knowledge: ak_xxx
- Topics: topic_xxx
- Intentions: intent_xxx
- Indexing runs: run_xxx
"""

from uuid import uuid4


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "note_xxx" where xxx is 12 hex characters
    """
    return f"note_{uuid4().hex[:12]}"


def generate_knowledge_id() -> str:
    """
    Generate unique atomic knowledge record ID.

    Returns:
        ID in format "ak_xxx" where xxx is 12 hex characters
    """
    return f"ak_{uuid4().hex[:12]}"


def generate_topic_id() -> str:
    """
    Generate unique Topic ID.

    Returns:
        ID in format "topic_xxx" where xxx is 12 hex characters
    """
    return f"topic_{uuid4().hex[:12]}"


def generate_intention_id() -> str:
    """
    Generate unique Intention ID.

    Returns:
        ID in format "intent_xxx" where xxx is 12 hex characters
    """
    return f"intent_{uuid4().hex[:12]}"


def generate_run_id() -> str:
    """
    Generate unique indexing run ID.

    Returns:
        ID in format "run_xxx" where xxx is 12 hex characters
    """
    return f"run_{uuid4().hex[:12]}"
