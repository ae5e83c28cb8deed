"""User collection endpoints."""

import itertools

from fastapi import HTTPException

from store import users_db

_ids = itertools.count(1)


async def get(request, params) -> dict:
    """List all users."""
    users = list(users_db.values())
    return {
        "users": users,
        "count": len(users),
    }


async def post(request, params) -> dict:
    """Create a new user from a JSON body with name and email."""
    body = await request.json()
    email = body["email"]

    for existing_user in users_db.values():
        if existing_user["email"] == email:
            raise HTTPException(
                status_code=400,
                detail=f"Email {email} is already registered",
            )

    user_id = str(next(_ids))
    new_user = {"id": user_id, "name": body["name"], "email": email}
    users_db[user_id] = new_user
    return new_user
