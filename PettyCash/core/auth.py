"""
User records, login and the persisted session.

User records come from the login sheet, whose columns are fixed::

    0: name   1: id   2: password   3: role   4: pages

Passwords are stored and compared in plaintext, as the login sheet holds them.

The :class:`Session` is the only state kept between runs. It is written to
``settings.session_path`` on login (without the password), read on startup and removed on
logout. Core operations receive it as an argument and never read it from disk themselves.
"""
import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .tabular import TabularResponse
from ..status import status

NAME_COLUMN: int = 0
ID_COLUMN: int = 1
PASSWORD_COLUMN: int = 2
ROLE_COLUMN: int = 3
PAGES_COLUMN: int = 4


class Role(enum.StrEnum):
    User = 'user'
    Admin = 'admin'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'Role':
        """Normalises a role cell. Absent or unrecognised values are treated as User."""
        if not value:
            return cls.User
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logging.debug(f'Unrecognised role "{value}", defaulting to "{cls.User}".')
            return cls.User


class Page(enum.StrEnum):
    Dashboard = 'dashboard'
    Form = 'form'
    Receiving = 'receiving'
    Reports = 'reports'
    Settings = 'settings'
    AdminPanel = 'admin_panel'


ALL_PAGES: Tuple[Page, ...] = tuple(Page)

PAGE_ALIASES: Dict[str, Page] = {
    'dashboard': Page.Dashboard,
    'add entry': Page.Form,
    'form': Page.Form,
    'receive entry': Page.Receiving,
    'receiving': Page.Receiving,
    'reports': Page.Reports,
}


def parse_pages(value: Optional[str]) -> Tuple[Page, ...]:
    """Maps a free-text, comma-separated pages cell to page identifiers.

    The literal ``all`` (any case, surrounding whitespace ignored) expands to every page.
    Unknown labels are dropped and duplicates keep their first position.
    """
    if not value:
        return ()
    if value.strip().lower() == 'all':
        return ALL_PAGES

    pages: Dict[Page, None] = {}
    for token in value.split(','):
        page = PAGE_ALIASES.get(token.strip().lower())
        if page is not None:
            pages.setdefault(page, None)
    return tuple(pages)


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    password: str = field(repr=False)
    role: Role = Role.User
    pages: Tuple[Page, ...] = ()


def user_from_row(table: TabularResponse, row_index: int) -> Optional[UserRecord]:
    """Reads a user record from a login sheet row, or None when the id or name is missing."""
    user_id = table.value(row_index, ID_COLUMN)
    name = table.value(row_index, NAME_COLUMN)
    if not user_id or not name:
        return None

    return UserRecord(
        id=user_id,
        name=name,
        password=table.value(row_index, PASSWORD_COLUMN) or '',
        role=Role.parse(table.value(row_index, ROLE_COLUMN)),
        pages=parse_pages(table.value(row_index, PAGES_COLUMN)),
    )


@dataclass(frozen=True)
class Session:
    """The signed-in user, as passed to the core operations."""
    id: str
    name: str
    role: Role = Role.User
    pages: Tuple[Page, ...] = ()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.Admin

    def can_access(self, page: Page) -> bool:
        return Page(page) in self.pages

    @classmethod
    def from_user(cls, user: UserRecord) -> 'Session':
        return cls(id=user.id, name=user.name, role=user.role, pages=user.pages)

    def to_dict(self) -> Dict[str, object]:
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role.value,
            'pages': [p.value for p in self.pages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> 'Session':
        """
        Raises:
            ValueError: If id or name is missing, pages is not a list, or a page is unknown.
        """
        if not data.get('id') or not data.get('name'):
            raise ValueError('Session data is missing "id" or "name".')
        if not isinstance(data.get('pages') or [], list):
            raise ValueError(f'Session pages must be a list, got {type(data["pages"]).__name__}.')
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            role=Role.parse(data.get('role')),
            pages=tuple(Page(p) for p in data.get('pages') or ()),
        )


def require_page(session: Optional[Session], page: Page) -> None:
    """
    Raises:
        status.PermissionDeniedError: If there is no session or it cannot access the page.
    """
    if session is None or not session.can_access(page):
        raise status.PermissionDeniedError(f'Page "{page}" is not available.')


def authenticate(users: Iterable[UserRecord], user_id: str, password: str) -> Session:
    """
    Matches the credentials against the user records.

    Args:
        users: Records as returned by :func:`PettyCash.core.service._fetch_users`.
        user_id: The entered user id.
        password: The entered password.

    Returns:
        The session of the matching user.

    Raises:
        status.ValidationError: If either input is empty.
        status.AuthenticationError: If no record matches both id and password.
    """
    user_id = (user_id or '').strip()
    password = (password or '').strip()
    if not user_id or not password:
        raise status.ValidationError('Please enter both Username and Password.')

    user = next((u for u in users if u.id == user_id and u.password == password), None)
    if user is None:
        raise status.AuthenticationError

    logging.debug(f'User "{user.id}" authenticated with role "{user.role}".')
    return Session.from_user(user)


def login(user_id: str, password: str, users: Optional[Iterable[UserRecord]] = None) -> Session:
    """
    Authenticates, persists the session and emits ``signals.sessionChanged``.

    Args:
        user_id: The entered user id.
        password: The entered password.
        users: Already fetched user records. The login sheet is read when omitted.

    Raises:
        status.ValidationError: If either input is empty.
        status.AuthenticationError: If no record matches both id and password.
    """
    from . import service
    from ..ui.actions import signals

    if users is None:
        users = service._fetch_users()

    session = authenticate(users, user_id, password)
    logging.info(f'Signed in as "{session.id}".')
    save_session(session)
    signals.sessionChanged.emit(session)
    return session


def save_session(session: Session) -> None:
    """
    Writes the session to the session file.
    """
    from ..settings import lib
    with open(lib.settings.session_path, 'w', encoding='utf-8') as f:
        json.dump(session.to_dict(), f, indent=4, ensure_ascii=False)


def load_session() -> Optional[Session]:
    """
    Reads the persisted session.

    A corrupt session file is removed and treated as no session.

    Returns:
        The session, or None if there is none.
    """
    from ..settings import lib

    path = lib.settings.session_path
    if not path.exists():
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError('Session data is not an object.')
        return Session.from_dict(data)
    except (ValueError, TypeError) as ex:
        logging.error(f'Error parsing stored session, removing it: {ex}')
        path.unlink()
        return None


def clear_session() -> None:
    """
    Removes the persisted session.
    """
    from ..settings import lib
    lib.settings.session_path.unlink(missing_ok=True)


def logout() -> None:
    """
    Clears the persisted session and notifies the UI.
    """
    from ..ui.actions import signals
    clear_session()
    signals.sessionChanged.emit(None)

