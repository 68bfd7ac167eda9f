import logging

from fastapi import HTTPException, status
from sqlmodel import Session, select

from app.core.security import create_access_token, get_password_hash, verify_password
from app.data_access.models import User
from app.domain.user import LoginRequest, RegisterRequest, TokenResponse, UserPublic


logger = logging.getLogger(__name__)

class AuthService:
    """Registration and login of Battiolab operators.

    Passwords are stored as bcrypt hashes only; successful calls return a
    signed, time-limited bearer token together with the public user data.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _issue_token(self, user: User) -> TokenResponse:
        public = UserPublic.model_validate(user)
        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role}
        )
        return TokenResponse(token=token, user=public)

    def register(self, data: RegisterRequest) -> TokenResponse:
        """Creates a user account and signs it in.

        Args:
            data (RegisterRequest): Email, password and site code.

        Returns:
            TokenResponse: The token and public user record.

        Raises:
            HTTPException: 400 status if the email or username is already taken.
        """
        if self.session.exec(select(User).where(User.email == data.email)).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists"
            )

        username = data.resolved_username()
        if self.session.exec(select(User).where(User.username == username)).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Username '{username}' is already taken"
            )

        user = User(
            email=data.email,
            username=username,
            hashed_password=get_password_hash(data.password),
            site_code=data.site_code,
        )
        try:
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to register user: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal database error during registration."
            )

        logger.info(f"Registered user {user.id}")
        return self._issue_token(user)

    def login(self, data: LoginRequest) -> TokenResponse:
        """Verifies credentials and returns a fresh token.

        Raises:
            HTTPException: 400 status if the user does not exist or the password is wrong.
        """
        user = self.session.exec(select(User).where(User.email == data.email)).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User not found"
            )
        if not verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Incorrect password"
            )
        return self._issue_token(user)
