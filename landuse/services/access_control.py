"""
Access Control Resolver — permission keys → reachable dashboard routes.

Computed fresh per request from the caller's access keys; nothing is
cached across sessions.

Usage:
    from landuse.services.access_control import compute_allowed_routes, resolve_redirect
    routes = compute_allowed_routes(MENU_TREE, ctx.access)
    target = resolve_redirect("/dashboard/report", routes, {"type": "diversion"})
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from landuse.models.navigation import DASHBOARD_ROUTE, VIEWER_PREFIXES, MenuItem

logger = logging.getLogger(__name__)


def _visible(item: MenuItem, granted: set[str]) -> bool:
    return item.access_key is None or item.access_key in granted


def compute_allowed_routes(menu_tree: Iterable[MenuItem], granted_keys: Iterable[str]) -> list[str]:
    """Walk the two-level tree and collect the routes the caller may open.

    A parent is reachable when it has no key or its key is granted; its
    sub-items are then checked one by one. Duplicates (conversion and
    diversion views of one page) collapse to the first occurrence.
    """
    granted = set(granted_keys)
    routes: list[str] = []
    seen: set[str] = set()

    def _add(route: str | None) -> None:
        if route and route not in seen:
            seen.add(route)
            routes.append(route)

    for item in menu_tree:
        if not _visible(item, granted):
            continue
        _add(item.href)
        for sub in item.sub_items:
            if _visible(sub, granted):
                _add(sub.href)

    if "dashboard" in granted and DASHBOARD_ROUTE not in seen:
        routes.insert(0, DASHBOARD_ROUTE)
    return routes


def _is_dashboard_root(path: str) -> bool:
    return path in (DASHBOARD_ROUTE, DASHBOARD_ROUTE + "/")


def is_path_allowed(path: str, allowed_routes: Iterable[str]) -> bool:
    """Prefix match on a '/' boundary: /dashboard/report allows /dashboard/report/7."""
    for route in allowed_routes:
        if path.startswith(route) and (len(path) == len(route) or path[len(route)] == "/"):
            return True
    return False


def resolve_redirect(
    path: str,
    allowed_routes: list[str],
    query: Mapping[str, str] | None = None,
) -> str | None:
    """Where to send a caller who opened ``path``; None means stay.

    Rules, in order:
      1. On /dashboard with a first allowed route other than /dashboard →
         that route.
      2. Generic viewer pages (application detail) never redirect.
      3. Path not allowed → first allowed route, keeping ``?type=``;
         except on /dashboard, where the caller stays.
      4. No allowed routes at all → /dashboard for any other path.
    """
    query = query or {}
    on_dashboard = _is_dashboard_root(path)
    first_allowed = allowed_routes[0] if allowed_routes else DASHBOARD_ROUTE

    if on_dashboard and first_allowed != DASHBOARD_ROUTE:
        return first_allowed

    if any(path.startswith(prefix) for prefix in VIEWER_PREFIXES):
        return None

    if allowed_routes and not is_path_allowed(path, allowed_routes):
        if on_dashboard:
            return None
        type_param = query.get("type")
        if type_param:
            return f"{first_allowed}?type={type_param}"
        return first_allowed

    if not allowed_routes and not on_dashboard:
        return DASHBOARD_ROUTE

    return None


def visible_menu(menu_tree: Iterable[MenuItem], granted_keys: Iterable[str]) -> list[MenuItem]:
    """Sidebar view of the tree: hidden keys dropped, empty groups dropped."""
    granted = set(granted_keys)
    result: list[MenuItem] = []
    for item in menu_tree:
        if not _visible(item, granted):
            continue
        if item.sub_items:
            subs = tuple(s for s in item.sub_items if _visible(s, granted))
            if not subs:
                continue
            result.append(MenuItem(item.label, item.href, item.access_key, item.query_type, subs))
        else:
            result.append(item)
    return result
