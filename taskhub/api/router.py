from fastapi import APIRouter

from ..routers import auth as auth_router
from ..routers import daily_tasks as daily_tasks_router
from ..routers import messages as messages_router
from ..routers import problems as problems_router
from ..routers import tasks as tasks_router
from ..routers import users as users_router


api_router = APIRouter(prefix="/api")

# Endpoints live at /api/auth, /api/tasks, /api/daily-tasks, ...
api_router.include_router(auth_router.router)
api_router.include_router(tasks_router.router)
api_router.include_router(daily_tasks_router.router)
api_router.include_router(messages_router.router)
api_router.include_router(users_router.router)
api_router.include_router(problems_router.router)


@api_router.get("/", tags=["meta"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "TaskHub API",
        "docs": "/docs",
        "auth": {
            "register": "/api/auth/register",
            "login": "/api/auth/login",
            "me": "/api/auth/me",
        },
        "tasks": "/api/tasks",
        "daily_tasks": "/api/daily-tasks",
        "messages": "/api/messages",
        "users": "/api/users",
        "problems": "/api/problems",
        "realtime": "/ws?token=<jwt>",
    }
