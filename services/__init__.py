"""
Services package for the application.

This package contains the service classes that hold the business rules:
display identity, notifications and their push delivery, presence,
the social graph, posts and engagement, and the feed.
"""
