# db.py
from contextlib import contextmanager
from typing import Iterator

from sqlmodel import Session, SQLModel, create_engine


class Database:
  """Explicit handle on the remote invoice database."""

  def __init__(self, url: str, echo: bool = False) -> None:
    if not url:
      raise RuntimeError("DATABASE_URL is not set in backend .env")
    self.url = url
    self.engine = create_engine(url, echo=echo, pool_pre_ping=True)

  def init_db(self) -> None:
    SQLModel.metadata.create_all(self.engine)

  @contextmanager
  def session(self) -> Iterator[Session]:
    with Session(self.engine) as session:
      yield session

  def dispose(self) -> None:
    self.engine.dispose()
