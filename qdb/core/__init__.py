"""
Settings, logging and database session management.
"""
