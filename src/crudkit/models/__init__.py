r"""
Entities handled by the repositories.

Importing this package registers every model with `Base.metadata`, which is what
`Base.metadata.create_all()` (tests, local setup) relies on.

    from crudkit.models import User
"""

from .user import User

__all__ = [
    "User",
]
