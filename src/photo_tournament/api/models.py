"""Pydantic models for API request bodies."""

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    """Vote for one side of a bracket matchup."""

    matchup_index: int = Field(alias="matchupIndex", ge=0)
    choice: int = Field(ge=0, le=1)


class CasualVoteRequest(BaseModel):
    """Vote for a photo outside the bracket."""

    photo_id: int = Field(alias="photoId")
