"""
Travel Spending: a small expense tracker with a local JSON store
and an owner-scoped synced store backed by SQLAlchemy.
"""
