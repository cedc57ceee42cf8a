"""Conversation depth and progress services."""

from optimism.services.conversation.depth_tracker import ConversationDepthTracker
from optimism.services.conversation.progress_analyzer import ProgressAnalyzer

__all__ = ["ConversationDepthTracker", "ProgressAnalyzer"]
