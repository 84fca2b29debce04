"""
Workflow Stage Registry — maps (stage, variant) to the backend workflow id.

Pure lookups over the static stage table in ``landuse.models.stages``.
Nothing here touches the network and nothing raises on an unknown key:
a miss returns None and list pages treat None as "fetch unfiltered".

Usage:
    from landuse.services.stage_registry import resolve_workflow_id
    resolve_workflow_id("dlc_recommendations", "conversion")   # -> 23
    resolve_workflow_id("sdc_hill_report", "diversion")        # -> 64
    resolve_workflow_id("nonexistent", "conversion")           # -> None
"""

from __future__ import annotations

import logging

from landuse.models.stages import (
    STAGE_SLUGS,
    STAGE_TABLE,
    Role,
    StageDefinition,
    StageDescriptor,
    Variant,
)

logger = logging.getLogger(__name__)


def _normalise_key(stage_key: str | None) -> str | None:
    if not stage_key:
        return None
    key = stage_key.strip().lower()
    return STAGE_SLUGS.get(key, key.replace("-", "_"))


def _normalise_variant(variant: str | Variant | None) -> Variant | None:
    if variant is None or isinstance(variant, Variant):
        return variant
    try:
        return Variant(variant.strip().lower())
    except ValueError:
        return None


_BY_KEY: dict[str, StageDefinition] = {d.key: d for d in STAGE_TABLE}


def _build_descriptors() -> tuple[dict[int, StageDescriptor], dict[int, list[str]]]:
    owners: dict[int, list[tuple[StageDefinition, Variant | None]]] = {}
    for definition in STAGE_TABLE:
        if definition.variant_independent:
            wf_id = definition.conversion_id if definition.conversion_id is not None \
                else definition.diversion_id
            owners.setdefault(wf_id, []).append((definition, None))
            continue
        for variant, wf_id in definition.ids().items():
            owners.setdefault(wf_id, []).append((definition, variant))

    descriptors: dict[int, StageDescriptor] = {}
    claims: dict[int, list[str]] = {}
    for wf_id, claimants in owners.items():
        owner, variant = claimants[0]
        aliases = tuple(d.key for d, _ in claimants[1:])
        descriptors[wf_id] = StageDescriptor(
            workflow_sequence_id=wf_id,
            stage_key=owner.key,
            display_name=owner.display_name,
            variant=variant,
            roles=owner.roles,
            aliases=aliases,
        )
        if aliases:
            claims[wf_id] = [owner.key, *aliases]
    return descriptors, claims


_DESCRIPTORS, _CONFLICTS = _build_descriptors()


# ═════════════════════════════════════════════════════════════════════════════
# Lookups
# ═════════════════════════════════════════════════════════════════════════════

def resolve_workflow_id(stage_key: str | None, variant: str | Variant | None) -> int | None:
    """Return the workflow id of a stage queue, or None when unknown.

    Variant-independent stages answer the same id for either variant and
    for a missing variant. Two-variant stages need a valid variant.
    """
    definition = _BY_KEY.get(_normalise_key(stage_key) or "")
    if definition is None:
        logger.debug("Unknown stage key %r", stage_key)
        return None

    if definition.variant_independent:
        return definition.conversion_id if definition.conversion_id is not None \
            else definition.diversion_id

    resolved_variant = _normalise_variant(variant)
    if resolved_variant is None:
        return None
    return definition.ids().get(resolved_variant)


def get_stage(stage_key: str | None) -> StageDefinition | None:
    return _BY_KEY.get(_normalise_key(stage_key) or "")


def describe_workflow_id(workflow_sequence_id: int | None) -> StageDescriptor | None:
    """Reverse lookup: what a workflow id means (one meaning per id)."""
    if workflow_sequence_id is None:
        return None
    return _DESCRIPTORS.get(workflow_sequence_id)


def stages_for_role(role: str | Role | None) -> list[StageDefinition]:
    """Stages a role works. Admin sees every stage."""
    if not role:
        return []
    role_value = role.value if isinstance(role, Role) else str(role)
    if role_value == Role.ADMIN.value:
        return list(STAGE_TABLE)
    return [d for d in STAGE_TABLE if role_value in (r.value for r in d.roles)]


def list_stage_ids() -> list[int]:
    """Every workflow id the registry knows, ascending."""
    return sorted(_DESCRIPTORS)


def registry_conflicts() -> dict[int, list[str]]:
    """Workflow ids that more than one stage key claims.

    The first key listed owns the id in ``describe_workflow_id``; the rest
    are alternative queue views over the same backend step.
    """
    return {wf_id: list(keys) for wf_id, keys in _CONFLICTS.items()}


def log_registry_conflicts() -> None:
    for wf_id, keys in registry_conflicts().items():
        logger.info(
            "Workflow id %d is claimed by several stages: %s (owner=%s)",
            wf_id, ", ".join(keys), keys[0],
        )
