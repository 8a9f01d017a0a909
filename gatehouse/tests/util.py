"""In-memory stand-ins for the database and mail relay, for tests."""

from typing import Dict, List, Optional, Tuple

from gatehouse import domain
from gatehouse.services.exceptions import InfrastructureError, \
    MailDeliveryFailed, UserExists


class FakeUserDirectory(object):
    """Behaves like :class:`gatehouse.services.users.UserDirectory`."""

    def __init__(self) -> None:
        self.users: Dict[str, domain.User] = {}
        self.passwords: Dict[str, str] = {}
        self.created: List[domain.User] = []
        self.unavailable = False
        self._next_id = 1

    def add(self, username: str, email: str, password: str,
            name: str = '') -> domain.User:
        """Put a user straight into the directory."""
        user = domain.User(user_id=str(self._next_id), username=username,
                           email=email, name=name, verified=True)
        self._next_id += 1
        self.users[user.user_id] = user
        self.passwords[user.user_id] = password
        return user

    def _check(self) -> None:
        if self.unavailable:
            raise InfrastructureError('Database is down')

    def verify_credentials(self, identifier: str,
                           secret: str) -> Optional[domain.User]:
        self._check()
        for user in self.users.values():
            if identifier in (user.username, user.email) \
                    and self.passwords[user.user_id] == secret:
                return user
        return None

    def find_by_id(self, user_id: str) -> Optional[domain.User]:
        self._check()
        return self.users.get(user_id)

    def username_exists(self, username: str) -> bool:
        self._check()
        return any(u.username == username for u in self.users.values())

    def email_exists(self, email: str) -> bool:
        self._check()
        return any(u.email == email for u in self.users.values())

    def create_user(self, username: str, email: str, name: str,
                    avatar_url: str, password: str) -> domain.User:
        self._check()
        if self.username_exists(username) or self.email_exists(email):
            raise UserExists('Conflicts with an existing user')
        user = self.add(username, email, password, name=name)
        user = user._replace(avatar_url=avatar_url, verified=False)
        self.users[user.user_id] = user
        self.created.append(user)
        return user


class FakeMailer(object):
    """Behaves like :class:`gatehouse.services.mail.MailSession`."""

    sender = 'noreply@example.com'

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []
        self.unavailable = False

    def send(self, to: str, subject: str, html: str) -> None:
        if self.unavailable:
            raise MailDeliveryFailed('Relay is down')
        self.sent.append((to, subject, html))
