"""
Structured remark blocks.

The backend's transition endpoint stores one free-text ``remark`` per
history entry. Specialised reports (survey checklists, MARSAC areas, fee
amounts) are written into that column as a small text block that an
auditor can read as-is and that ``decode_block`` can parse back:

    [Survey Report]
    variant: 2
    paddy_land_ecology: no
    paddy_four_sided: yes
    Remark: Site inspected on 12th

The fee block keeps the single-line form reviewers already know:

    Fee Report: Payable amount Rs. 1500. Paid at counter 2

Booleans are written as yes/no and read back as True/False; every other
value comes back as a string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class BlockKind(str, Enum):
    SURVEY = "Survey Report"
    MARSAC = "MARSAC Report"
    FEE = "Fee Report"


REMARK_LABEL = "Remark:"

_FIELD_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_HEADER_RE = re.compile(r"^\[(?P<kind>[^\]]+)\]$")
_FIELD_RE = re.compile(r"^(?P<key>[A-Za-z][A-Za-z0-9_]*): ?(?P<value>.*)$")
_FEE_RE = re.compile(
    r"^Fee Report: Payable amount Rs\. (?P<amount>\d[\d,]*(?:\.\d+)?)\.(?: (?P<remark>.*))?$",
    re.DOTALL,
)


@dataclass(frozen=True)
class RemarkBlock:
    kind: BlockKind | None
    fields: dict = field(default_factory=dict)
    remark: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value if self.kind else None,
            "fields": dict(self.fields),
            "remark": self.remark,
        }


def _render_value(value) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if value is None:
        return ""
    return " ".join(str(value).splitlines()).strip()


def _parse_value(raw: str):
    lowered = raw.strip().lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    return raw.strip()


def encode_block(kind: BlockKind, fields: dict, remark: str = "") -> str:
    """Serialise report data plus the reviewer's remark into one remark string."""
    remark = (remark or "").strip()

    if kind == BlockKind.FEE:
        extra = set(fields) - {"amount"}
        if "amount" not in fields or extra:
            raise ValueError("Fee block takes exactly one field: amount")
        return f"Fee Report: Payable amount Rs. {_render_value(fields['amount'])}. {remark}"

    lines = [f"[{kind.value}]"]
    for key, value in fields.items():
        if not _FIELD_KEY_RE.match(key):
            raise ValueError(f"Invalid remark block field name: {key!r}")
        lines.append(f"{key}: {_render_value(value)}")
    lines.append(f"{REMARK_LABEL} {remark}".rstrip())
    return "\n".join(lines)


def decode_block(text: str | None) -> RemarkBlock:
    """Parse a remark written by ``encode_block``.

    Text that is not a block comes back as ``RemarkBlock(kind=None,
    remark=text)``, so every history remark can be passed through here.
    """
    text = text or ""

    fee = _FEE_RE.match(text)
    if fee:
        return RemarkBlock(
            kind=BlockKind.FEE,
            fields={"amount": fee.group("amount")},
            remark=(fee.group("remark") or "").strip(),
        )

    lines = text.splitlines()
    header = _HEADER_RE.match(lines[0].strip()) if lines else None
    if not header:
        return RemarkBlock(kind=None, remark=text)
    try:
        kind = BlockKind(header.group("kind"))
    except ValueError:
        return RemarkBlock(kind=None, remark=text)

    fields: dict = {}
    remark_lines: list[str] = []
    in_remark = False
    for line in lines[1:]:
        if in_remark:
            remark_lines.append(line)
            continue
        if line.startswith(REMARK_LABEL):
            in_remark = True
            remark_lines.append(line[len(REMARK_LABEL):].lstrip())
            continue
        match = _FIELD_RE.match(line)
        if match:
            fields[match.group("key")] = _parse_value(match.group("value"))
        else:
            # Hand-edited block; keep what cannot be parsed in the remark
            in_remark = True
            remark_lines.append(line)

    return RemarkBlock(kind=kind, fields=fields, remark="\n".join(remark_lines).strip())
