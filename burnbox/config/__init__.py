"""Environment-driven configuration for Redis, Celery and storage."""
