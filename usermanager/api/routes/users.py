"""
User API endpoints for account management.

Translates HTTP requests into user commands/queries and maps the service
errors onto status codes.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from usermanager.config import get_settings
from usermanager.core.exceptions import (
    DuplicateUserError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from usermanager.schemas.user import (
    CreateUserCommand,
    CreateUserRequest,
    DeleteUserCommand,
    GetUserQuery,
    GetUsersQuery,
    PagedResult,
    UpdateUserCommand,
    UpdateUserRequest,
    UserDto,
)
from usermanager.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)
pagination = get_settings().pagination

router = APIRouter(prefix="/api/users", tags=["users"])


def validation_response(e: ValidationError) -> JSONResponse:
    """400 response listing every violated rule."""
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": e.errors})


def internal_error(e: Exception) -> HTTPException:
    logger.exception(f"Unexpected error in users API: {str(e)}")
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=PagedResult[UserDto])
async def list_users(
    page_number: int = Query(pagination.DEFAULT_PAGE_NUMBER),
    page_size: int = Query(pagination.DEFAULT_PAGE_SIZE),
    service: UserService = Depends(get_user_service),
):
    """
    List users one page at a time, oldest first.

    Args:
        page_number: 1-based page index
        page_size: Users per page

    Returns:
        Page of users with total count and total pages

    Raises:
        400: Invalid paging parameters
    """
    try:
        return await service.list_users(GetUsersQuery(page_number=page_number, page_size=page_size))
    except ValidationError as e:
        return validation_response(e)
    except Exception as e:
        raise internal_error(e)


@router.get("/{user_id}", response_model=UserDto)
async def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    """
    Get a user by id.

    Raises:
        404: User not found
    """
    try:
        return await service.get_user(GetUserQuery(user_id=user_id))
    except ValidationError as e:
        return validation_response(e)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise internal_error(e)


@router.post("", response_model=UUID, status_code=201)
async def create_user(
    request: CreateUserRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
):
    """
    Create a user.

    Returns:
        Id of the new user, with a Location header pointing at it

    Raises:
        400: Validation failed
        409: Username or email already exists
        500: Database error
    """
    command = CreateUserCommand(
        username=request.username,
        email=request.email,
        password=request.password,
        role=request.role,
    )
    try:
        user_id = await service.create_user(command)
    except ValidationError as e:
        return validation_response(e)
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error(e)

    response.headers["Location"] = router.url_path_for("get_user", user_id=str(user_id))
    return user_id


@router.put("/{user_id}", status_code=204)
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    service: UserService = Depends(get_user_service),
):
    """
    Update a user's profile.

    The body's user_id must match the id in the URL. A missing user_id is
    reported together with the other validation errors.

    Raises:
        400: Id mismatch or validation failed
        404: User not found
        409: Username or email belongs to another user
    """
    if request.user_id is not None and request.user_id != user_id:
        raise HTTPException(status_code=400, detail="User ID in body does not match URL")

    command = UpdateUserCommand(
        user_id=request.user_id,
        username=request.username,
        email=request.email,
        role=request.role,
        is_active=request.is_active,
    )
    try:
        await service.update_user(command)
    except ValidationError as e:
        return validation_response(e)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error(e)

    return Response(status_code=204)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    """
    Delete a user permanently.

    Raises:
        404: User not found
    """
    try:
        await service.delete_user(DeleteUserCommand(user_id=user_id))
    except ValidationError as e:
        return validation_response(e)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise internal_error(e)

    return Response(status_code=204)
