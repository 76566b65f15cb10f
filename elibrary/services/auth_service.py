from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token

from elibrary.models.user import ROLE_USER, User
from elibrary.repositories.user_repo import UserRepo
from elibrary.services.errors import ErrorKind, ServiceError


class AuthService:
    @staticmethod
    def register(username: str, email: str, password: str, role: str = ROLE_USER, phone: str = None):
        if UserRepo.get_by_username(username) or UserRepo.get_by_email(email):
            raise ServiceError(ErrorKind.USERNAME_TAKEN)

        user = User(
            username=username,
            email=email,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=role
        )
        UserRepo.create(user)
        return user

    @staticmethod
    def login(username: str, password: str):
        user = UserRepo.get_by_username(username)
        if not user or not check_password_hash(user.password_hash, password):
            raise ServiceError(ErrorKind.INVALID_CREDENTIALS)

        token = AuthService.issue_token(user)
        return token, user

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "username": user.username}
        )
