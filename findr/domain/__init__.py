# Domain Package
"""
Core business entities and the contracts infrastructure implements.
"""
