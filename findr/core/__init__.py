# Core Package
"""
Business logic: relevance scoring and search use cases.
"""
