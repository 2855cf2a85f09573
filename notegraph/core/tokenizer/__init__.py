"""
Tokenizer module for token counting and truncation.

Keeps compound text within the embedding model's input limit.
"""

from notegraph.config import TokenizerConfig
from notegraph.core.tokenizer.tokenizer import Tokenizer

__all__ = ["Tokenizer", "TokenizerConfig"]
