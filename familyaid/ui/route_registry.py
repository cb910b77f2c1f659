"""Route Registry.

Central table of every navigable path.  The app shell looks paths up
here, runs the guard on the matching entry, and then calls its
factory.

Paths are literal segments plus ``:name`` parameters, e.g.
``/admin/families/:id/edit``.  Lookup walks entries in registration
order and the first match wins.

Adding a screen = one ``register()`` call + one view class.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING, Callable, Optional

from familyaid.logger import StructuredLogger
from familyaid.models.enums import Capability, Role
from familyaid.models.identity import Identity
from familyaid.services.role_classifier import can_manage_users, classify

if TYPE_CHECKING:
    import customtkinter as ctk

ViewFactory = Callable[["ctk.CTkFrame", dict[str, str]], "ctk.CTkFrame"]

ALL_ROLES: frozenset[Role] = frozenset({Role.HEAD, Role.ADMIN, Role.ROOT})
HOUSEHOLD_ROLES: frozenset[Role] = frozenset({Role.HEAD, Role.ADMIN})
ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.ROOT})
ROOT_ONLY: frozenset[Role] = frozenset({Role.ROOT})

USERS_PATH: str = "/admin/users"


class RouteEntry:
    """Metadata for a single registered route.

    Attributes
    ----------
    path:
        Pattern such as ``/admin/families/:id/edit``.
    title:
        Human-readable name shown in the sidebar and window title.
    factory:
        ``(parent, params) -> CTkFrame``; ``None`` for pure redirects.
    required_roles:
        Raw roles allowed through.  Empty means any logged-in account.
    required_capabilities:
        Derived capabilities, any one of which is enough.  Empty means
        the raw-role check alone decides.
    public:
        ``True`` for routes rendered without any guard (the login view).
    redirect:
        For index routes: where to send an identity that reaches them.
    menu_group:
        ``"admin"`` or ``"household"`` for sidebar entries, else ``None``.
    """

    __slots__ = (
        "path",
        "title",
        "factory",
        "required_roles",
        "required_capabilities",
        "public",
        "redirect",
        "menu_group",
        "_segments",
    )

    def __init__(
        self,
        path: str,
        title: str,
        factory: Optional[ViewFactory],
        required_roles: frozenset[Role] = frozenset(),
        required_capabilities: frozenset[Capability] = frozenset(),
        *,
        public: bool = False,
        redirect: Optional[Callable[[Identity], str]] = None,
        menu_group: Optional[str] = None,
    ) -> None:
        self.path = path
        self.title = title
        self.factory = factory
        self.required_roles = required_roles
        self.required_capabilities = required_capabilities
        self.public = public
        self.redirect = redirect
        self.menu_group = menu_group
        self._segments: tuple[str, ...] = _split(path)

    def match(self, path: str) -> Optional[dict[str, str]]:
        """Route parameters if *path* matches this entry, else ``None``."""
        segments = _split(path)
        if len(segments) != len(self._segments):
            return None
        params: dict[str, str] = {}
        for pattern, actual in zip(self._segments, segments):
            if pattern.startswith(":"):
                if not actual:
                    return None
                params[pattern[1:]] = actual
            elif pattern != actual:
                return None
        return params

    def __repr__(self) -> str:
        return f"RouteEntry(path={self.path!r})"


class RouteRegistry:
    """Manages the collection of registered routes.

    Parameters
    ----------
    logger:
        Structured logger for registration events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._entries: dict[str, RouteEntry] = {}
        self._logger = logger

    def register(
        self,
        path: str,
        title: str,
        factory: Optional[ViewFactory],
        required_roles: Collection[Role] = frozenset(),
        required_capabilities: Collection[Capability] = frozenset(),
        *,
        public: bool = False,
        redirect: Optional[Callable[[Identity], str]] = None,
        menu_group: Optional[str] = None,
    ) -> RouteEntry:
        """Register (or replace) the route for *path*."""
        if path in self._entries:
            self._logger.warning("Route '%s' already registered; overwriting.", path)
        entry = RouteEntry(
            path=path,
            title=title,
            factory=factory,
            required_roles=frozenset(required_roles),
            required_capabilities=frozenset(required_capabilities),
            public=public,
            redirect=redirect,
            menu_group=menu_group,
        )
        self._entries[path] = entry
        self._logger.debug("Route registered: %s (%s)", path, title)
        return entry

    def match(self, path: str) -> Optional[tuple[RouteEntry, dict[str, str]]]:
        """First entry matching *path* with its parameters, or ``None``."""
        for entry in self._entries.values():
            params = entry.match(path)
            if params is not None:
                return entry, params
        return None

    def get(self, path: str) -> RouteEntry:
        """Return the entry registered under the exact pattern *path*.

        Raises
        ------
        KeyError
            If *path* is not registered.
        """
        if path not in self._entries:
            raise KeyError(f"Route '{path}' is not registered.")
        return self._entries[path]

    def menu_entries(self, group: str) -> list[RouteEntry]:
        """Sidebar entries of *group*, in registration order."""
        return [entry for entry in self._entries.values() if entry.menu_group == group]

    def __len__(self) -> int:
        return len(self._entries)


def _split(path: str) -> tuple[str, ...]:
    stripped = path.split("?", 1)[0].strip("/")
    return tuple(stripped.split("/")) if stripped else ()


# ---------------------------------------------------------------------------
# Default route table
# ---------------------------------------------------------------------------

def register_default_routes(
    registry: RouteRegistry,
    factories: Callable[[str], Optional[ViewFactory]],
    index_redirect: Callable[[Identity], str],
) -> RouteRegistry:
    """Fill *registry* with the application's routes and role lists.

    Parameters
    ----------
    registry:
        Registry to populate.
    factories:
        Maps a route pattern to its view factory, or to ``None`` for
        screens the shell renders as a placeholder.
    index_redirect:
        Destination for ``/`` once an identity is known.
    """
    def add(
        path: str,
        title: str,
        roles: frozenset[Role],
        *,
        public: bool = False,
        menu_group: Optional[str] = None,
    ) -> None:
        registry.register(
            path, title, factories(path), roles, public=public, menu_group=menu_group,
        )

    registry.register("/", "Home", None, ALL_ROLES, redirect=index_redirect)

    add("/dashboard", "Household Dashboard", HOUSEHOLD_ROLES, menu_group="household")
    add("/dashboard/family", "Household Data", HOUSEHOLD_ROLES, menu_group="household")
    add("/dashboard/members", "Members", HOUSEHOLD_ROLES, menu_group="household")
    add("/dashboard/requests", "Requests", HOUSEHOLD_ROLES, menu_group="household")
    add("/dashboard/notifications", "Notifications", HOUSEHOLD_ROLES, menu_group="household")
    add("/dashboard/print-summary", "Print Summary", HOUSEHOLD_ROLES)
    add("/dashboard/profile", "Profile", ALL_ROLES)

    add("/admin", "Statistics", ADMIN_ROLES, menu_group="admin")
    add("/admin/families", "Registered Households", ADMIN_ROLES, menu_group="admin")
    add("/admin/requests", "Requests", ADMIN_ROLES, menu_group="admin")
    add("/admin/support-vouchers", "Support Vouchers", ADMIN_ROLES, menu_group="admin")
    add("/admin/notifications", "Notifications", ADMIN_ROLES, menu_group="admin")
    add("/admin/reports", "Reports", ADMIN_ROLES, menu_group="admin")
    add(USERS_PATH, "User Management", ADMIN_ROLES, menu_group="admin")
    add("/admin/settings", "Settings", ROOT_ONLY, menu_group="admin")
    add("/admin/notifications-list", "My Notifications", ADMIN_ROLES, menu_group="admin")
    add("/admin/logs", "Activity Log", ROOT_ONLY, menu_group="admin")
    add("/admin/families/:id/edit", "Edit Household", ADMIN_ROLES)
    add("/admin/families/:id/summary", "Household Summary", ADMIN_ROLES)
    add("/admin/support-vouchers/:id", "Voucher Details", ADMIN_ROLES)

    add("/auth", "Sign In", frozenset(), public=True)
    return registry


# ---------------------------------------------------------------------------
# Sidebar menu
# ---------------------------------------------------------------------------

def visible_entries(
    registry: RouteRegistry,
    identity: Identity,
    dashboard: str,
) -> list[RouteEntry]:
    """Menu entries for *identity* on the *dashboard* side.

    Household heads get the household menu.  Administrators get the
    admin menu, minus entries their raw role may not open.  A
    dual-role account gets whichever side it has switched to.  User
    management is listed only for accounts allowed to manage users.
    """
    if identity.role == Role.HEAD or (classify(identity).is_dual_role and dashboard == "head"):
        group = "household"
    else:
        group = "admin"

    entries: list[RouteEntry] = []
    for entry in registry.menu_entries(group):
        if entry.required_roles and identity.role not in entry.required_roles:
            continue
        if entry.path == USERS_PATH and not can_manage_users(identity):
            continue
        entries.append(entry)
    return entries
