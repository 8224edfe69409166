"""
Session Manager

The only component that talks to the identity collaborator about who is
signed in. It builds an immutable Session and hands it to subscribers;
everything else receives the Session as an argument.

A session that cannot be loaded degrades to anonymous (read-only)
instead of blocking the app.
"""

from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ledgerbook.activity import ActivityLogger
from ledgerbook.errors import AuthenticationError, ValidationError
from ledgerbook.models.identity import Role, Session, SignUpForm
from ledgerbook.services.storage import IdentityInterface, PersistenceError
from ledgerbook.validation import issues_from_pydantic


SessionListener = Callable[[Session], None]


class SessionManager:
    """Owns the current Session and notifies subscribers when it changes."""

    def __init__(
        self,
        identity: IdentityInterface,
        activity_logger: Optional[ActivityLogger] = None,
        admin_email: Optional[str] = None,
    ):
        self._identity = identity
        self._activity = activity_logger or ActivityLogger()
        self._admin_email = admin_email.strip().lower() if admin_email else None
        self._listeners: list[SessionListener] = []
        self.current: Session = Session.anonymous()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, session: Session) -> Session:
        self.current = session
        for listener in list(self._listeners):
            listener(session)
        return session

    async def _load(self) -> Session:
        try:
            user = await self._identity.current_user()
        except PersistenceError as e:
            self._activity.log_session_degraded(str(e))
            return Session.anonymous()

        if user is None:
            return Session.anonymous()

        try:
            role = await self._identity.role_of(user.id)
        except (PersistenceError, ValueError) as e:
            self._activity.log_session_degraded(f"role lookup failed: {e}")
            role = Role.NONE

        return Session(user=user, role=role)

    async def refresh(self) -> Session:
        """Reload the session and publish it to subscribers."""
        return self._publish(await self._load())

    async def sign_up(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
    ) -> Session:
        """
        Register a new account and sign it in.

        The account gets no role (read-only) unless its email matches the
        configured admin email, which bootstraps the first administrator.

        Raises:
            ValidationError: If the email, password or profile fields are malformed
            AuthenticationError: If the email is already registered
            PersistenceError: If the identity backend fails
        """
        try:
            form = SignUpForm(
                email=email, password=password, name=name or None, username=username or None
            )
        except PydanticValidationError as e:
            raise ValidationError("account", issues_from_pydantic(e))

        user = await self._identity.sign_up(
            form.email, form.password, name=form.name, username=form.username
        )

        role = Role.NONE
        if self._admin_email and user.email.lower() == self._admin_email:
            await self._identity.set_role(user.id, Role.ADMIN)
            role = Role.ADMIN

        self._activity.log_signed_up(user.id, role.value)
        return await self.refresh()

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: If the credentials are wrong
            PersistenceError: If the identity backend fails
        """
        try:
            user = await self._identity.sign_in(email, password)
        except AuthenticationError as e:
            self._activity.log_sign_in_failed(str(e))
            raise

        self._activity.log_signed_in(user.id)
        return await self.refresh()

    async def sign_out(self) -> Session:
        """Sign out and drop to an anonymous session."""
        user_id = self.current.user_id
        await self._identity.sign_out()
        self._activity.log_signed_out(user_id)
        return self._publish(Session.anonymous())
