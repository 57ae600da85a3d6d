from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from .config import MAX_COMMENT_LENGTH, MAX_MESSAGE_LENGTH, MAX_POST_LENGTH, MAX_TITLE_LENGTH


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class _ProfileBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    username: str
    bio: str | None = Field(default=None, max_length=1000)
    photo_url: str | None = Field(default=None, max_length=500)

    @field_validator("name", "username", mode="before")
    @classmethod
    def _trim_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("bio", "photo_url", mode="before")
    @classmethod
    def _trim_optional(cls, v):
        return _strip(v) if isinstance(v, str) else v


class _PlayerFields(BaseModel):
    team: str | None = Field(default=None, max_length=120)
    city: str | None = Field(default=None, max_length=120)
    position: str | None = Field(default=None, max_length=40)
    secondary_position: str | None = Field(default=None, max_length=40)
    sport: str | None = Field(default="Volleyball", max_length=40)
    birth_month: int | None = Field(default=None, ge=1, le=12)
    birth_year: int | None = Field(default=None, ge=1900, le=2100)
    height: str | None = Field(default=None, max_length=16)
    vertical: str | None = Field(default=None, max_length=16)
    weight: str | None = Field(default=None, max_length=16)

    @field_validator("team", "city", "position", "secondary_position", "sport", "height", "vertical", "weight", mode="before")
    @classmethod
    def _trim(cls, v):
        return _strip(v) if isinstance(v, str) else v


class AthleteProfile(_ProfileBase, _PlayerFields):
    user_type: Literal["athlete"]


class MentorProfile(_ProfileBase, _PlayerFields):
    user_type: Literal["mentor"]


class CoachProfile(_ProfileBase):
    user_type: Literal["coach"]
    team: str = Field(min_length=1, max_length=120)
    city: str = Field(min_length=1, max_length=120)
    region: str | None = Field(default=None, max_length=120)
    division: str | None = Field(default=None, max_length=120)
    coach_message: str | None = Field(default=None, max_length=1000)

    @field_validator("team", "city", mode="before")
    @classmethod
    def _trim_required_coach(cls, v):
        return v.strip() if isinstance(v, str) else v


class AdminProfile(_ProfileBase, _PlayerFields):
    user_type: Literal["admin"]
    admin_role: Literal["parent", "clubAdmin"]


ProfileUpdate = Annotated[
    Union[AthleteProfile, MentorProfile, CoachProfile, AdminProfile],
    Field(discriminator="user_type"),
]
profile_update_adapter = TypeAdapter(ProfileUpdate)


class RoleSelect(BaseModel):
    user_type: Literal["athlete", "coach", "admin", "mentor"]


class MatchPreferencesInput(BaseModel):
    looking_for_positions: list[str] = Field(default_factory=list)
    min_age: int | None = Field(default=None, ge=0, le=120)
    max_age: int | None = Field(default=None, ge=0, le=120)
    preferred_city: str | None = Field(default=None, max_length=120)


class HighlightCreate(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    video_url: str = Field(min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=2000)
    thumbnail_url: str | None = Field(default=None, max_length=500)

    @field_validator("title", "video_url", mode="before")
    @classmethod
    def _trim(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentCreate(BaseModel):
    body: str = Field(max_length=MAX_COMMENT_LENGTH)


class PostCreate(BaseModel):
    body: str = Field(max_length=MAX_POST_LENGTH)
    media_url: str | None = Field(default=None, max_length=500)


class ChatCreate(BaseModel):
    participant_id: str


class MessageCreate(BaseModel):
    body: str = Field(max_length=MAX_MESSAGE_LENGTH)
