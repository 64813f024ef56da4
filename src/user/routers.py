from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork, RepositoryProtocol
from src.core.errors.exceptions import InstanceNotFoundException
from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_current_user, get_service_claims
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.routers import (
    ACCESS_TOKEN_HEADER,
    REFRESH_TOKEN_HEADER,
    as_bearer,
)
from src.user.auth.schemas import ChangePasswordModel, CreateUserModel
from src.user.auth.usecases.register import RegisterUseCase, get_register_use_case
from src.user.models import User
from src.user.schemas import (
    UpdateUserModel,
    UserCreatedViewModel,
    UserProfileViewModel,
)
from src.user.usecases.delete_user import DeleteUserUseCase, get_delete_user_use_case
from src.user.usecases.update_password import (
    UpdateUserPasswordUseCase,
    get_update_user_password_use_case,
)
from src.user.usecases.update_user import UpdateUserUseCase, get_update_user_use_case

router = APIRouter()


@router.post("", status_code=201, response_model=UserCreatedViewModel)
async def signup_user(
    response: Response,
    user_form_data: CreateUserModel,
    use_case: Annotated[RegisterUseCase, Depends(get_register_use_case)],
) -> UserCreatedViewModel:
    """
    Create a new user account and log it in.
    """
    user, tokens = await use_case.execute(data=user_form_data)
    response.headers[ACCESS_TOKEN_HEADER] = as_bearer(tokens.access_token)
    response.headers[REFRESH_TOKEN_HEADER] = as_bearer(tokens.refresh_token)
    return UserCreatedViewModel(
        id=user.id,
        email=user.email,
        description=user.description,
        expires=tokens.expires,
    )


@router.get("/me", response_model=UserProfileViewModel)
async def get_user_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserProfileViewModel:
    """
    Returns the current user's information.
    """
    return UserProfileViewModel.model_validate(current_user)


@router.put("/me", response_model=UserProfileViewModel)
async def update_user_profile(
    user_form_data: UpdateUserModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[UpdateUserUseCase, Depends(get_update_user_use_case)],
) -> UserProfileViewModel:
    """
    Replaces the current user's email and description.
    """
    user = await use_case.execute(data=user_form_data, user_id=current_user.id)
    return UserProfileViewModel.model_validate(user)


@router.delete("/me", response_model=SuccessResponse)
async def delete_user_profile(
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[DeleteUserUseCase, Depends(get_delete_user_use_case)],
) -> SuccessResponse:
    """
    Deletes the current user's account.
    """
    return await use_case.execute(user_id=current_user.id)


@router.patch("/me/password", response_model=SuccessResponse)
async def update_user_password(
    response: Response,
    user_form_data: ChangePasswordModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[
        UpdateUserPasswordUseCase, Depends(get_update_user_password_use_case)
    ],
) -> SuccessResponse:
    """
    Updates the user password. Every other refresh token of the user stops
    working; a replacement is returned in the ``Refresh-Token`` header.
    """
    refresh_token = await use_case.execute(data=user_form_data, user_id=current_user.id)
    response.headers[REFRESH_TOKEN_HEADER] = as_bearer(refresh_token)
    return SuccessResponse(success=True)


@router.get("/{user_id}", response_model=UserProfileViewModel)
async def get_user_info_by_id(
    user_id: UUID,
    _: Annotated[Claims, Depends(get_service_claims)],
    uow: ApplicationUnitOfWork[RepositoryProtocol] = Depends(get_unit_of_work),
) -> UserProfileViewModel:
    """
    Looks up any user. Reserved for the service identity.
    """
    user = await uow.users.get_single(uow.session, id=user_id)
    if not user:
        raise InstanceNotFoundException("User not found")
    return UserProfileViewModel.model_validate(user)
