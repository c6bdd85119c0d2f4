# SQLModel definitions, imported here to ensure metadata is populated for Alembic.
from .project import Project  # noqa: F401
