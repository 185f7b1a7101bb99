"""Detection output configuration models."""

from pydantic import BaseModel, Field


class FileOutputSettings(BaseModel):
    enabled: bool = False
    path: str = "output/"
    type: str = "table"  # table or csv


class SQLiteSettings(BaseModel):
    enabled: bool = True
    path: str = "birdnet.db"


class MySQLSettings(BaseModel):
    enabled: bool = False
    username: str = ""
    password: str = ""
    database: str = ""
    host: str = "localhost"
    port: str = "3306"


class OutputSettings(BaseModel):
    file: FileOutputSettings = Field(default_factory=FileOutputSettings, exclude=True)
    sqlite: SQLiteSettings = Field(default_factory=SQLiteSettings)
    mysql: MySQLSettings = Field(default_factory=MySQLSettings)


class SentrySettings(BaseModel):
    enabled: bool = False  # opt-in error tracking
    debug: bool = False
