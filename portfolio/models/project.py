"""Project model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(sa_type=sa.Text, nullable=False)
    description: Optional[str] = Field(default=None, sa_type=sa.Text)
