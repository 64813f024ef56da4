from typing import Annotated

from fastapi import APIRouter, Depends, Header, Response

from src.user.auth.dependencies import get_refresh_claims
from src.user.auth.jwt_payload_schema import Claims
from src.user.auth.schemas import AccessTokenResponse, LoginResponse, LoginUserModel
from src.user.auth.usecases.get_access_by_refresh import (
    GetAccessByRefreshUseCase,
    get_access_by_refresh_use_case,
)
from src.user.auth.usecases.login import LoginUserUseCase, get_login_user_use_case
from src.user.auth.usecases.service_token import (
    IssueServiceTokenUseCase,
    get_issue_service_token_use_case,
)

ACCESS_TOKEN_HEADER = "Token"
REFRESH_TOKEN_HEADER = "Refresh-Token"

router = APIRouter()


def as_bearer(token: str) -> str:
    return f"Bearer {token}"


@router.post("/login", response_model=LoginResponse)
async def login_user(
    response: Response,
    login_form_data: LoginUserModel,
    use_case: Annotated[LoginUserUseCase, Depends(get_login_user_use_case)],
) -> LoginResponse:
    """
    Authenticate user. Tokens are returned in the ``Token`` and
    ``Refresh-Token`` headers, the access-token expiry in the body.
    """
    tokens = await use_case.execute(data=login_form_data)
    response.headers[ACCESS_TOKEN_HEADER] = as_bearer(tokens.access_token)
    response.headers[REFRESH_TOKEN_HEADER] = as_bearer(tokens.refresh_token)
    return LoginResponse(user_id=tokens.user_id, expires=tokens.expires)


@router.get("/token", response_model=AccessTokenResponse)
async def get_access_by_refresh(
    response: Response,
    claims: Annotated[Claims, Depends(get_refresh_claims)],
    use_case: Annotated[
        GetAccessByRefreshUseCase, Depends(get_access_by_refresh_use_case)
    ],
) -> AccessTokenResponse:
    """
    Exchange a refresh token for a new access token.
    """
    access = await use_case.execute(claims)
    response.headers[ACCESS_TOKEN_HEADER] = as_bearer(access.access_token)
    return AccessTokenResponse(expires=access.expires)


@router.post("/service-token", status_code=204, include_in_schema=False)
def get_service_token(
    use_case: Annotated[
        IssueServiceTokenUseCase, Depends(get_issue_service_token_use_case)
    ],
    service_secret: Annotated[str | None, Header(alias="X-Service-Secret")] = None,
) -> Response:
    """
    Issue the long-lived token used by the chat-bot.
    """
    token = use_case.execute(service_secret)
    return Response(
        status_code=204, headers={ACCESS_TOKEN_HEADER: as_bearer(token)}
    )
