"""
Domain layer for notification dispatch business logic.

This layer contains:
- Data models (type-safe structures)
- Rate-limited email dispatch queue
- Notification job pipeline (SQS message -> dispatched batch)
"""
