"""
Vote Pydantic Schemas

The like/dislike endpoints answer with the book's counters after the vote.
"""

from pydantic import BaseModel, ConfigDict, Field

from catalog.models import VoteAction


class VoteTotalsResponse(BaseModel):
    """Counters of a book after a committed vote."""

    likes: int = Field(..., ge=0, description="Number of likes")
    dislikes: int = Field(..., ge=0, description="Number of dislikes")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": {"likes": 3, "dislikes": 1}},
    )


class BookVoteSummary(VoteTotalsResponse):
    """Counters plus the caller's own vote (null when anonymous or not voted)."""

    book_id: int = Field(..., description="Book identifier")
    my_vote: VoteAction | None = Field(
        default=None,
        description="The caller's current vote on this book",
    )
