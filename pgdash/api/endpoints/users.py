import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core import schemas
from pgdash.core.admin import roles
from pgdash.core.database import get_db, get_environment

router = APIRouter(
    prefix="/api/{env}/users",
    tags=["Users"],
    dependencies=[Depends(get_environment)],
)

db_dep = Annotated[AsyncSession, Depends(get_db)]


# List database users
@router.get("", response_model=List[schemas.RoleResponse])
async def list_users(db: db_dep):
    try:
        return await roles.list_roles(db)
    except Exception as error:
        logging.error(f"Failed to list users: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))


# Create user
@router.post("", response_model=schemas.RoleChangeResponse)
async def create_user(user: schemas.CreateRole, db: db_dep):
    try:
        await roles.create_role(
            db,
            user.username,
            user.password,
            can_create_db=user.can_create_db,
            is_superuser=user.is_superuser,
            can_replicate=user.can_replicate,
        )
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to create user {user.username}: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))

    return {"message": "User created successfully", "username": user.username}


# Update user permissions and password
@router.put("/{username}", response_model=schemas.RoleChangeResponse)
async def update_user(username: str, changes: schemas.UpdateRole, db: db_dep):
    flags = changes.model_dump(exclude={"new_password"})
    try:
        await roles.update_role(db, username, flags, changes.new_password)
    except Exception as error:
        await db.rollback()  # Undo every ALTER if one failed
        logging.error(f"Failed to update user {username}: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))

    return {"message": "User updated successfully", "username": username}


# Delete user
@router.delete("/{username}", response_model=schemas.RoleChangeResponse)
async def delete_user(username: str, db: db_dep):
    if username in roles.PROTECTED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete {username} superuser",
        )

    try:
        await roles.drop_role(db, username)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to delete user {username}: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))

    return {"message": "User deleted successfully", "username": username}


# Update user display name
@router.put("/{username}/display-name", response_model=schemas.RoleChangeResponse)
async def update_display_name(
    username: str, payload: schemas.DisplayNameUpdate, db: db_dep
):
    display_name = payload.display_name.strip()
    if not display_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Display name is required",
        )

    if not await roles.role_exists(username, db):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        await roles.set_display_name(db, username, display_name)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to update display name of {username}: {error}")
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))

    return {
        "message": "Display name updated successfully",
        "username": username,
        "display_name": display_name,
    }


# Get detailed user information
@router.get("/{username}/details")
async def get_user_details(username: str, db: db_dep):
    details = await roles.get_role_details(username, db)
    if details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return details


@router.get("/{username}/databases")
async def get_user_databases(username: str, db: db_dep):
    """Databases owned by the user, template databases excluded."""
    return await roles.list_role_databases(username, db)


@router.get("/{username}/connections")
async def get_user_connections(username: str, db: db_dep):
    """Live sessions of the user."""
    return await roles.list_role_connections(username, db)
