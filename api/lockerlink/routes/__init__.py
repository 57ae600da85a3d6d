from fastapi import FastAPI

from .chat import router as chat_router, scaffold_router as chat_scaffold_router
from .feed import router as feed_router, scaffold_router as feed_scaffold_router
from .highlights import router as highlights_router, scaffold_router as highlights_scaffold_router
from .match import router as match_router, scaffold_router as match_scaffold_router
from .points import router as points_router, scaffold_router as points_scaffold_router
from .profile import router as profile_router, scaffold_router as profile_scaffold_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(profile_router, tags=["users"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(highlights_router, tags=["highlights"])
    app.include_router(feed_router, tags=["feed"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(points_router, tags=["points"])

    app.include_router(profile_scaffold_router, prefix="/_scaffold/profile", tags=["scaffold-profile"])
    app.include_router(match_scaffold_router, prefix="/_scaffold/match", tags=["scaffold-match"])
    app.include_router(highlights_scaffold_router, prefix="/_scaffold/highlights", tags=["scaffold-highlights"])
    app.include_router(feed_scaffold_router, prefix="/_scaffold/feed", tags=["scaffold-feed"])
    app.include_router(chat_scaffold_router, prefix="/_scaffold/chat", tags=["scaffold-chat"])
    app.include_router(points_scaffold_router, prefix="/_scaffold/points", tags=["scaffold-points"])
