"""User service: login by username and user management."""
import uuid

from catalogmaster import config
from catalogmaster.access import Permission, require_permission
from catalogmaster.data_structures import Role
from catalogmaster.exceptions import ValidationError
from catalogmaster.result import Result, ErrorType


class UserService:
    """Handles user lookup and administration.

    There are no passwords: login is a plain username lookup.
    """

    def __init__(self, users):
        self.users = users

    def login(self, username):
        """Return the User with this username, or None."""
        if not username:
            return None
        return self.users.find_by_username(username.strip())

    def list_users(self, actor):
        require_permission(actor, Permission.MANAGE_USERS)
        return self.users.all()

    def save_user(self, actor, user):
        """Insert or update a user.

        Raises:
            PermissionDenied: If the actor cannot manage users.
            ValidationError: If username or name is missing, the role is
                unknown, or the username belongs to another user.
        """
        require_permission(actor, Permission.MANAGE_USERS)

        if not user.username or not user.username.strip():
            raise ValidationError("Username is required", "username")
        if not user.name or not user.name.strip():
            raise ValidationError("Name is required", "name")
        if not user.role:
            user.role = Role.USER
        if user.role not in Role.ALL:
            raise ValidationError(f"Unknown role '{user.role}'", "role")

        existing = self.users.get(user.id) if user.id else None
        if existing is not None:
            # Usernames are fixed once created
            user.username = existing.username

        user.username = user.username.strip()
        other =self.users.find_by_username(user.username)
        if other is not None and other.id != user.id:
            raise ValidationError(f"Username '{user.username}' is already taken", "username")

        if not user.id:
            user.id = uuid.uuid4().hex
        self.users.save(user)
        return user

    def delete_user(self, actor, user_id):
        """Delete a user. The main administrator account is refused.

        Raises:
            ValidationError: If `user_id` belongs to the protected admin user.
        """
        require_permission(actor, Permission.MANAGE_USERS)
        target = self.users.get(user_id)
        if target is not None and target.username == config.PROTECTED_USERNAME:
            raise ValidationError("The main administrator cannot be deleted", "username")
        if not self.users.delete(user_id):
            return Result.fail(f"User '{user_id}' not found", ErrorType.NOT_FOUND)
        return Result.ok(user_id)
