"""
Identity Store

Registered-users table and the single active session. Authentication is a
local mock: passwords are compared verbatim and the token is derived from
the user id.

All operations resolve failures locally and return
(result, None) on success or (None, error_message) on failure.
"""
import asyncio
from typing import Optional

from pydantic import ValidationError

from datarium.app.logging_config import get_logger
from datarium.app.schemas.auth import AuthCredentials, AuthSession, User
from datarium.app.services.app_context import (
    AppContext,
    SESSION_STORAGE_KEY,
    USERS_STORAGE_KEY,
    )
from datarium.app.services.key_value_store import StorageError

logger = get_logger(__name__)


def _validation_message(error: ValidationError) -> str:
    """First readable message of a ValidationError."""
    first = error.errors()[0]
    return str(first.get("msg", "Invalid input")).removeprefix("Value error, ")


class IdentityStore:
    """
    Owns the users table ("@app_users") and the session record ("@auth_data").

    The in-memory session is only replaced after every persisted write of
    the operation succeeded.
    """

    def __init__(self, context: AppContext):
        self.context = context
        self._in_flight = 0

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def is_loading(self) -> bool:
        """True while any operation is in progress (also with concurrent callers)."""
        return self._in_flight > 0

    @property
    def current_session(self) -> Optional[AuthSession]:
        return self.context.current_session

    @property
    def current_user(self) -> Optional[User]:
        return self.context.current_user

    @property
    def auth_token(self) -> Optional[str]:
        session = self.context.current_session
        return session.token if session else None

    # =========================================================================
    # Users table
    # =========================================================================

    async def _load_users(self) -> list[User]:
        return await self.context.store.load_list(USERS_STORAGE_KEY, User)

    async def list_users(self) -> tuple[list[User], Optional[str]]:
        """
        List all registered users in registration order.

        Returns:
            Tuple of (users, None) on success or ([], error_message) on failure
        """
        try:
            return await self._load_users(), None
        except StorageError as e:
            logger.error("Failed to load registered users", error=str(e))
            return [], f"Storage error: {e}"

    async def _simulate_latency(self) -> None:
        delay = self.context.settings.SIGN_IN_DELAY_SECONDS
        if delay > 0:
            await asyncio.sleep(delay)

    async def _restore_users(self, users: list[User]) -> None:
        """Write back the users table as it was before a failed registration."""
        try:
            await self.context.store.save_list(USERS_STORAGE_KEY, users, User)
        except StorageError as e:
            logger.error("Failed to roll back users table", error=str(e))

    async def _activate(self, user: User) -> AuthSession:
        """Persist the session for a user, then make it the active one."""
        session = AuthSession.for_user(user)
        await self.context.store.save_model(SESSION_STORAGE_KEY, session)
        await self.context.set_session(session)
        return session

    # =========================================================================
    # Operations
    # =========================================================================

    async def register(self, username: str, password: str) -> tuple[Optional[AuthSession], Optional[str]]:
        """
        Register a new user and sign them in.

        Args:
            username: Desired username (must not be taken, case-sensitive)
            password: Password (stored verbatim)

        Returns:
            Tuple of (AuthSession, None) on success or (None, error_message) on failure
        """
        try:
            credentials = AuthCredentials(username=username, password=password)
        except ValidationError as e:
            return None, _validation_message(e)

        self._in_flight += 1
        try:
            async with self.context.partition_lock(USERS_STORAGE_KEY):
                users = await self._load_users()
                await self._simulate_latency()

                if any(u.username == credentials.username for u in users):
                    logger.warning("Registration for existing username rejected", username=credentials.username)
                    return None, "Username already taken"

                user = User(username=credentials.username, password=credentials.password)
                await self.context.store.save_list(USERS_STORAGE_KEY, [*users, user], User)

                session = AuthSession.for_user(user)
                try:
                    await self.context.store.save_model(SESSION_STORAGE_KEY, session)
                except StorageError:
                    await self._restore_users(users)
                    raise

            await self.context.set_session(session)
            logger.info("User registered", user_id=user.id, username=user.username)
            return session, None
        except StorageError as e:
            logger.error("Registration failed", username=credentials.username, error=str(e))
            return None, f"Storage error: {e}"
        finally:
            self._in_flight -= 1

    async def sign_in(self, username: str, password: str) -> tuple[Optional[AuthSession], Optional[str]]:
        """
        Sign in with an exact username/password match.

        Waits SIGN_IN_DELAY_SECONDS before answering (simulated network latency).

        Returns:
            Tuple of (AuthSession, None) on success or (None, error_message) on failure
        """
        try:
            credentials = AuthCredentials(username=username, password=password)
        except ValidationError as e:
            return None, _validation_message(e)

        self._in_flight += 1
        try:
            users = await self._load_users()
            found = next(
                (u for u in users if u.username == credentials.username and u.password == credentials.password),
                None,
                )

            await self._simulate_latency()

            if found is None:
                logger.info("Sign-in rejected", username=credentials.username)
                return None, "Invalid username or password"

            session = await self._activate(found)
            logger.info("User signed in", user_id=found.id)
            return session, None
        except StorageError as e:
            logger.error("Sign-in failed", username=credentials.username, error=str(e))
            return None, f"Storage error: {e}"
        finally:
            self._in_flight -= 1

    async def sign_out(self) -> None:
        """
        Clear the persisted session record, then the active session. Idempotent.

        If the record cannot be removed the user stays signed in, so memory
        and storage keep agreeing (a restart would restore that session).
        """
        previous = self.context.current_user
        try:
            await self.context.store.remove_item(SESSION_STORAGE_KEY)
        except StorageError as e:
            logger.error("Failed to remove persisted session, still signed in", error=str(e))
            return
        if previous is not None:
            await self.context.set_session(None)
            logger.info("User signed out", user_id=previous.id)

    async def restore_session(self) -> Optional[AuthSession]:
        """
        Re-activate the persisted session, if any (application startup).

        Returns:
            The restored AuthSession, or None when there is none or it can't be read
        """
        self._in_flight += 1
        try:
            session = await self.context.store.load_model(SESSION_STORAGE_KEY, AuthSession)
        except StorageError as e:
            logger.error("Failed to load persisted session", error=str(e))
            return None
        finally:
            self._in_flight -= 1

        if session is not None:
            await self.context.set_session(session)
            logger.info("Session restored", user_id=session.user.id)
        return session
