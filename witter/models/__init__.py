"""
Witter API — ORM Models Package

Importing this package registers every table with `Base.metadata`, which
Alembic and the test suite rely on.
"""

from witter.models.user import Follow, User
from witter.models.weet import Favorite, Reweet, Tab, Weet

__all__ = ["User", "Follow", "Weet", "Reweet", "Favorite", "Tab"]
