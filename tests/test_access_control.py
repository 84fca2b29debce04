"""Tests for the access control resolver: allowed routes, redirects, menu."""

from landuse.models.navigation import MENU_TREE, MenuItem
from landuse.services.access_control import (
    compute_allowed_routes,
    is_path_allowed,
    resolve_redirect,
    visible_menu,
)

# Items without an access key are visible to every caller
UNKEYED_ROUTES = ["/dashboard/legacy-data", "/dashboard/llmc-review", "/dashboard/user-management"]


class TestComputeAllowedRoutes:
    def test_parent_and_sub_items_checked_independently(self):
        routes = compute_allowed_routes(MENU_TREE, ["dashboard", "enquiries", "conversion"])

        assert routes == ["/dashboard", "/dashboard/enquiries", *UNKEYED_ROUTES]

    def test_sub_items_need_their_own_key(self):
        routes = compute_allowed_routes(MENU_TREE, ["conversion", "report"])

        assert routes == [*UNKEYED_ROUTES, "/dashboard/report"]
        assert "/dashboard/unprocessed-applications" not in routes

    def test_shared_routes_are_deduplicated_in_order(self):
        routes = compute_allowed_routes(
            MENU_TREE, ["conversion", "diversion", "report", "dlc_recommendations"],
        )

        assert routes.count("/dashboard/report") == 1
        assert routes.count("/dashboard/dlc-recommendations") == 1
        assert routes.index("/dashboard/dlc-recommendations") < routes.index("/dashboard/report")
        assert len(routes) == len(set(routes))

    def test_dashboard_exactly_once(self):
        routes = compute_allowed_routes(MENU_TREE, ["dashboard", "view_application"])

        assert routes.count("/dashboard") == 1
        assert routes[0] == "/dashboard"

    def test_dashboard_prepended_when_tree_lacks_it(self):
        tree = (MenuItem("Report", "/dashboard/report", "report"),)

        assert compute_allowed_routes(tree, ["report", "dashboard"]) == ["/dashboard", "/dashboard/report"]

    def test_no_keys_only_unkeyed_routes(self):
        assert compute_allowed_routes(MENU_TREE, []) == UNKEYED_ROUTES


class TestResolveRedirect:
    def test_dashboard_redirects_to_first_other_route(self):
        assert resolve_redirect("/dashboard", ["/dashboard/report"]) == "/dashboard/report"

    def test_dashboard_stays_when_it_is_first(self):
        assert resolve_redirect("/dashboard", ["/dashboard", "/dashboard/report"]) is None

    def test_disallowed_path_keeps_type_param(self):
        target = resolve_redirect("/dashboard/enquiries", ["/dashboard/report"], {"type": "diversion"})

        assert target == "/dashboard/report?type=diversion"

    def test_disallowed_path_without_type(self):
        assert resolve_redirect("/dashboard/enquiries", ["/dashboard/report"]) == "/dashboard/report"

    def test_prefix_match_respects_segment_boundary(self):
        routes = ["/dashboard/report"]

        assert resolve_redirect("/dashboard/report/42", routes) is None
        assert resolve_redirect("/dashboard/reports-from-dlc", routes) == "/dashboard/report"
        assert is_path_allowed("/dashboard/report", routes)
        assert not is_path_allowed("/dashboard/reporting", routes)

    def test_viewer_pages_never_redirect(self):
        routes = ["/dashboard/report"]

        assert resolve_redirect("/dashboard/application/12", routes) is None
        assert resolve_redirect("/dashboard/my-applications/12", routes) is None
        assert resolve_redirect("/dashboard/application/12", []) is None

    def test_no_routes_sends_everything_to_dashboard(self):
        assert resolve_redirect("/dashboard/report", []) == "/dashboard"
        assert resolve_redirect("/dashboard", []) is None


class TestVisibleMenu:
    def test_parent_without_visible_sub_items_is_hidden(self):
        labels = [item.label for item in visible_menu(MENU_TREE, ["enquiries"])]

        assert "Enquiries" not in labels
        assert "Legacy Data" in labels

    def test_sub_items_filtered(self):
        menu = {item.label: item for item in visible_menu(MENU_TREE, ["enquiries", "conversion"])}

        assert [s.label for s in menu["Enquiries"].sub_items] == ["Conversion"]
        assert menu["Enquiries"].sub_items[0].link == "/dashboard/enquiries?type=conversion"

    def test_hidden_parent_hides_children(self):
        labels = [item.label for item in visible_menu(MENU_TREE, ["report"])]

        assert "Conversion" not in labels
        assert "Diversion" not in labels
