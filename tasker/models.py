from sqlmodel import Field, SQLModel


class TaskBase(SQLModel):
    """Base model with shared fields"""

    title: str


class Task(TaskBase, table=True):
    """Database model"""

    __tablename__ = "tasks"
    # SQLite reuses the highest rowid after a delete unless AUTOINCREMENT is set.
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    completed: bool = Field(default=False, nullable=False)


class TaskCreate(TaskBase):
    """Schema for creating a task"""

    pass


class TaskResponse(SQLModel):
    """Schema for task responses"""

    id: int
    title: str
    completed: bool

    model_config = {"from_attributes": True}


class GenerateResponse(SQLModel):
    message: str
    count: int
