"""Pydantic models shared by command handlers."""

from typing import Optional

from pydantic import BaseModel, Field


class ResolvedContact(BaseModel):
    """A contact matched from user input, with the number that matched."""

    name: str = Field(..., description="Display name")
    number: str = Field(..., description="Phone number or other secondary identifier")
    label: Optional[str] = Field(default=None, description="'mobile', 'work', ...")
    contact_id: Optional[int] = None

    def display(self) -> str:
        return f"{self.name} - {self.number}"
