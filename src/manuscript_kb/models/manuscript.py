"""Project, manuscript and chapter records."""

from pydantic import BaseModel


class Project(BaseModel):
    """A series or collection of manuscripts sharing one entity catalogue."""

    id: int
    name: str
    path: str = ""


class Manuscript(BaseModel):
    """One book within a project."""

    id: int
    project_id: int
    title: str
    file_path: str = ""


class Chapter(BaseModel):
    """A unit of manuscript text, ordered by order_index within its manuscript."""

    id: int
    manuscript_id: int
    order_index: int
    title: str
    body: str = ""
