"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Account, profile media and session state
- Video: Video metadata needed for watch history
- WatchHistoryEntry: Ordered watch history rows
- Subscription: Subscriber -> channel relation
"""
from .user import User
from .video import Video, WatchHistoryEntry
from .subscription import Subscription
