"""Membership roster row (membership.csv). Only name and id are used."""

from pydantic import BaseModel


class Member(BaseModel):
    name: str
    id: str

    def __repr__(self):
        return f"<Member {self.id} name={self.name!r}>"
