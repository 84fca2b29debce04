"""
Sidebar navigation tree.

Two levels: top-level items, each optionally with sub-items. An item with
``access_key=None`` is visible to everyone who can reach its parent.
Group items carry no route of their own. Sub-items sharing a route
(conversion / diversion views of one page) are told apart by the ``type``
query parameter the UI appends.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MenuItem:
    label: str
    href: str | None = None
    access_key: str | None = None
    query_type: str | None = None
    sub_items: tuple["MenuItem", ...] = ()

    @property
    def link(self) -> str | None:
        if self.href and self.query_type:
            return f"{self.href}?type={self.query_type}"
        return self.href

    def to_dict(self) -> dict:
        result = {
            "label": self.label,
            "href": self.link,
            "access_key": self.access_key,
        }
        if self.query_type:
            result["type"] = self.query_type
        if self.sub_items:
            result["sub_items"] = [s.to_dict() for s in self.sub_items]
        return result


def _variant_pair(href: str, conversion_key: str | None = "conversion",
                  diversion_key: str | None = "diversion") -> tuple[MenuItem, ...]:
    return (
        MenuItem("Conversion", href, conversion_key, query_type="conversion"),
        MenuItem("Diversion", href, diversion_key, query_type="diversion"),
    )


def _queue_items(variant: str, pages: tuple[tuple[str, str, str], ...]) -> tuple[MenuItem, ...]:
    return tuple(MenuItem(label, href, key, query_type=variant) for label, href, key in pages)


MENU_TREE: tuple[MenuItem, ...] = (
    MenuItem("Dashboard", "/dashboard", "dashboard"),
    MenuItem("Enquiries", access_key="enquiries",
             sub_items=_variant_pair("/dashboard/enquiries")),
    MenuItem("SDAO Enquiries", access_key="SDAO_enquiries",
             sub_items=_variant_pair("/dashboard/sdao-enquiries")),
    MenuItem("Decision & Fees", "/dashboard/decision-and-fees", "decision_and_fee"),
    MenuItem("My Applications", "/dashboard/my-applications", "view_application"),
    MenuItem("New Application", "/dashboard/new-application", "create_application"),
    MenuItem("Legacy Data", "/dashboard/legacy-data"),
    MenuItem("LLMC Review",
             sub_items=_variant_pair("/dashboard/llmc-review", None, None)),
    MenuItem("User Management", "/dashboard/user-management"),
    MenuItem("Conversion", access_key="conversion", sub_items=_queue_items("conversion", (
        ("Unprocessed Applications", "/dashboard/unprocessed-applications", "unprocessed_applications"),
        ("Pending Enquiries", "/dashboard/pending-enquiries", "pending_enquiries"),
        ("LLMC Recommendations", "/dashboard/llmc-recommendations", "llmc_recommendations"),
        ("DLC Recommendations", "/dashboard/dlc-recommendations", "dlc_recommendations"),
        ("LRD Decision", "/dashboard/lrd-decision", "lrd_decision"),
        ("Report", "/dashboard/report", "report"),
        ("Reports from DLC", "/dashboard/reports-from-dlc", "report_from_dlc"),
    ))),
    MenuItem("Diversion", access_key="diversion", sub_items=_queue_items("diversion", (
        ("Unprocessed Applications", "/dashboard/unprocessed-applications", "unprocessed_applications"),
        ("Pending Enquiries", "/dashboard/pending-enquiries", "pending_enquiries"),
        ("LLMC Recommendations", "/dashboard/llmc-recommendations", "llmc_recommendations"),
        ("DLC Recommendations", "/dashboard/dlc-recommendations", "dlc_recommendations"),
        ("Report", "/dashboard/report", "report"),
        ("Final Orders", "/dashboard/final-orders", "final_order"),
        ("Reports from DLC", "/dashboard/reports-from-dlc", "report_from_dlc"),
    ))),
)

# Detail pages reachable from any list; never subject to redirects
VIEWER_PREFIXES: tuple[str, ...] = (
    "/dashboard/application/",
    "/dashboard/my-applications/",
)

DASHBOARD_ROUTE = "/dashboard"
