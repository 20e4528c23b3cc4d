from pydantic import BaseModel, Field


class RSSItem(BaseModel):
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


class RSSFeed(BaseModel):
    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = Field(default_factory=list)
