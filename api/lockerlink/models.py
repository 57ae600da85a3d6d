from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, false, func
from .database import Base


class UserAccount(Base):
    __tablename__ = "user_account"

    id = Column(String(128), primary_key=True)
    email = Column(String(254), nullable=True)
    name = Column(String(120), nullable=True)
    username = Column(String(20), nullable=True, unique=True)
    user_type = Column(String(16), nullable=True)
    admin_role = Column(String(16), nullable=True)
    team = Column(String(120), nullable=True)
    city = Column(String(120), nullable=True)
    region = Column(String(120), nullable=True)
    division = Column(String(120), nullable=True)
    position = Column(String(40), nullable=True)
    secondary_position = Column(String(40), nullable=True)
    sport = Column(String(40), nullable=True)
    birth_month = Column(Integer, nullable=True)
    birth_year = Column(Integer, nullable=True)
    height = Column(String(16), nullable=True)
    vertical = Column(String(16), nullable=True)
    weight = Column(String(16), nullable=True)
    bio = Column(Text, nullable=True)
    coach_message = Column(Text, nullable=True)
    photo_url = Column(String(500), nullable=True)
    points = Column(Integer, nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_user_account_points", "points"),)


class UserDailyActivity(Base):
    __tablename__ = "user_daily_activity"

    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True)
    activity_date = Column(String(10), nullable=False)
    highlights_posted = Column(Integer, nullable=False, server_default="0")
    comments_given = Column(Integer, nullable=False, server_default="0")
    likes_given = Column(Integer, nullable=False, server_default="0")


class MatchPreferences(Base):
    __tablename__ = "match_preferences"

    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True)
    looking_for_positions = Column(Text, nullable=False, server_default="[]")
    min_age = Column(Integer, nullable=True)
    max_age = Column(Integer, nullable=True)
    preferred_city = Column(String(120), nullable=True)
    ready_to_match = Column(Boolean, nullable=False, server_default=false())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Highlight(Base):
    __tablename__ = "highlight"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    video_url = Column(String(500), nullable=False)
    thumbnail_url = Column(String(500), nullable=True)
    upvotes = Column(Integer, nullable=False, server_default="0")
    comments_count = Column(Integer, nullable=False, server_default="0")
    points_awarded = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_highlight_user_id", "user_id"),
        Index("idx_highlight_upvotes", "upvotes"),
    )


class HighlightLike(Base):
    __tablename__ = "highlight_like"

    highlight_id = Column(String(36), ForeignKey("highlight.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class HighlightComment(Base):
    __tablename__ = "highlight_comment"

    id = Column(String(36), primary_key=True)
    highlight_id = Column(String(36), ForeignKey("highlight.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    body = Column(Text, nullable=False)
    points_awarded = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_highlight_comment_highlight_id", "highlight_id"),)


class Post(Base):
    __tablename__ = "post"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    body = Column(Text, nullable=False)
    media_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_post_created_at", "created_at"),)


class Chat(Base):
    __tablename__ = "chat"

    id = Column(String(36), primary_key=True)
    participant_a_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    participant_b_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    last_message = Column(Text, nullable=False, server_default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("participant_a_id", "participant_b_id", name="uq_chat_participants"),)


class ChatMessage(Base):
    __tablename__ = "chat_message"

    id = Column(String(36), primary_key=True)
    chat_id = Column(String(36), ForeignKey("chat.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(128), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_chat_message_chat_id", "chat_id"),)


class PointsEvent(Base):
    __tablename__ = "points_event"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False)
    delta = Column(Integer, nullable=False)
    reason = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_points_event_user_id", "user_id"),)
