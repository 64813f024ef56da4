"""
Single import point for every ORM model, so ``Base.metadata`` is complete
wherever the full schema is needed (Alembic autogenerate, test setup).
"""

from src.user.models import User as User
