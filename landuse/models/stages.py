"""
Workflow stage table — static department stage × variant → workflow id.

A stage key names a department queue as the portal's list pages know it.
The numeric ``workflow_sequence_id`` is what the backend filters and
routes on. Conversion and diversion variants of the same department use
different ids and must never be swapped.

Rows with a single id (hill reports, cabinet, DC office...) are variant
independent and resolve the same id whichever variant the caller passes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Variant(str, Enum):
    CONVERSION = "conversion"
    DIVERSION = "diversion"


class Role(str, Enum):
    """Departmental roles as the backend spells them."""
    ADMIN = "Admin"
    DC = "DC"
    SDAO = "SDAO"
    LLMC = "LLMC"
    DLC = "DLC"
    LRD = "LRD"
    DFO = "DFO"
    SDC = "SDC"
    CABINET = "Cabinet"


@dataclass(frozen=True)
class StageDefinition:
    """One row of the stage table."""
    key: str
    display_name: str
    roles: tuple[Role, ...]
    conversion_id: int | None = None
    diversion_id: int | None = None

    @property
    def variant_independent(self) -> bool:
        if self.conversion_id is None or self.diversion_id is None:
            return True
        return self.conversion_id == self.diversion_id

    def ids(self) -> dict[Variant, int]:
        out: dict[Variant, int] = {}
        if self.conversion_id is not None:
            out[Variant.CONVERSION] = self.conversion_id
        if self.diversion_id is not None:
            out[Variant.DIVERSION] = self.diversion_id
        return out


@dataclass(frozen=True)
class StageDescriptor:
    """Meaning of a single workflow id: which stage, which variant, who works it.

    ``variant`` is None when the stage is variant independent.
    ``aliases`` lists other stage keys whose queue shares this id.
    """
    workflow_sequence_id: int
    stage_key: str
    display_name: str
    variant: Variant | None
    roles: tuple[Role, ...]
    aliases: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "workflow_sequence_id": self.workflow_sequence_id,
            "stage": self.stage_key,
            "display_name": self.display_name,
            "variant": self.variant.value if self.variant else None,
            "roles": [r.value for r in self.roles],
            "aliases": list(self.aliases),
        }


# Order matters: when two rows claim the same id, the first row owns it and
# later rows are recorded as aliases of that descriptor.
STAGE_TABLE: tuple[StageDefinition, ...] = (
    StageDefinition("unprocessed_applications", "Unprocessed Applications",
                    (Role.DC,), conversion_id=15, diversion_id=4),
    StageDefinition("enquiries", "Enquiries", (Role.DC,), conversion_id=7, diversion_id=3),
    StageDefinition("sdao_enquiries", "SDAO Enquiries", (Role.SDAO,), conversion_id=8, diversion_id=19),
    StageDefinition("llmc_review", "LLMC Review", (Role.LLMC,), conversion_id=9, diversion_id=17),
    StageDefinition("llmc_meeting", "LLMC Meeting", (Role.LLMC,), conversion_id=9, diversion_id=60),
    StageDefinition("dlc_recommendations", "DLC Recommendations",
                    (Role.DLC,), conversion_id=23, diversion_id=20),
    StageDefinition("report", "Report", (Role.DC,), conversion_id=22, diversion_id=18),
    StageDefinition("lrd_report", "LRD Report", (Role.LRD,), conversion_id=16, diversion_id=17),
    StageDefinition("dfo_report", "DFO Report", (Role.DFO,), conversion_id=26, diversion_id=26),
    StageDefinition("sdc_report", "SDC Report", (Role.SDC,), conversion_id=28),
    StageDefinition("scd_report", "SCD Report", (Role.SDC,), conversion_id=61),
    StageDefinition("sdc_hill_report", "SDC Hill Report", (Role.SDC,), conversion_id=64),
    StageDefinition("dfo_hill_report", "DFO Hill Report", (Role.DFO,), conversion_id=65),
    StageDefinition("dc_office", "DC Office", (Role.DC,), conversion_id=24),
    StageDefinition("cabinet", "Cabinet", (Role.CABINET,), diversion_id=31),
    StageDefinition("cabinet_decision", "Cabinet Decision", (Role.CABINET,), conversion_id=20),
)

# Stage keys accepted from URLs in their hyphenated page-slug form too
STAGE_SLUGS: dict[str, str] = {d.key.replace("_", "-"): d.key for d in STAGE_TABLE}
