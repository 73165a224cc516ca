"""Field-level visibility for secured contracts.

A field of a secured entity (a Person) is shown when one of these holds,
checked in order:

1. the caller is the target;
2. the caller is in the target's family;
3. the caller leads a group the target belongs to;
4. the caller leads a group whose cluster chain has the target as
   leader or admin.

Otherwise the field must be mapped in the visibility policy, the caller
must hold View on its permission key, and the requested field list (if
any) must name it. Unmapped fields fail closed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import yaml

from arena_api.core.arena import ArenaStore, is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.rbac import PermissionOracle

logger = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = Path(__file__).resolve().parent.parent / "config" / "field_security.yaml"

SELF = "SELF"
FAMILY = "FAMILY"
GROUP_LEADER = "GROUP_LEADER"
CLUSTER_LEADER = "CLUSTER_LEADER"

WILDCARD = "*"


# ─────────────────────────────────────────────────────────────────────────────
# Requested fields
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class IncludeFieldSpec:
    """Caller-requested field list, matched case-insensitively.

    ``tokens`` is None when nothing was requested (all permitted fields).
    ``*`` selects everything; ``-NAME`` then removes a field. Exclusions
    without ``*`` have no effect.
    """

    tokens: Optional[frozenset[str]] = None

    @classmethod
    def parse(cls, value: Union[None, str, Iterable[str]]) -> "IncludeFieldSpec":
        if value is None:
            return cls()
        items = value.split(",") if isinstance(value, str) else value
        tokens = frozenset(item.strip().upper() for item in items if item and item.strip())
        return cls(tokens) if tokens else cls()

    @property
    def is_unset(self) -> bool:
        return self.tokens is None

    def allows(self, field_name: str) -> bool:
        if self.tokens is None:
            return True
        name = field_name.upper()
        if WILDCARD in self.tokens:
            return f"-{name}" not in self.tokens
        return name in self.tokens


ALL_FIELDS = IncludeFieldSpec(frozenset({WILDCARD}))


# ─────────────────────────────────────────────────────────────────────────────
# Caller relations
# ─────────────────────────────────────────────────────────────────────────────
def cluster_chain_has(store: ArenaStore, cluster_id: int, person_id: int) -> bool:
    """Walk a cluster and its ancestors looking for ``person_id`` as leader/admin.

    Stops at a root (no parent) or on revisiting a cluster.
    """
    visited: set[int] = set()
    while cluster_id and cluster_id > 0 and cluster_id not in visited:
        visited.add(cluster_id)
        cluster = store.get_cluster(cluster_id)
        if is_missing(cluster.cluster_id):
            return False
        if person_id in (cluster.leader_id, cluster.admin_id):
            return True
        cluster_id = cluster.parent_cluster_id
    return False


@dataclass(frozen=True)
class CallerContext:
    """The caller, and how they relate to one target person."""

    person_id: int
    family_id: int = arena.NOT_FOUND
    relations: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def for_target(
        cls,
        store: ArenaStore,
        caller: arena.Person,
        target: arena.Person,
        led_groups: Optional[list[arena.Group]] = None,
    ) -> "CallerContext":
        """Compute the short-circuit relations between caller and target once.

        Args:
            store: Data layer used for the leadership checks
            caller: Authenticated person
            target: Person being projected
            led_groups: Groups led by the caller, if already loaded

        Returns:
            CallerContext whose ``relations`` apply to ``target``
        """
        relations = set()
        if caller.person_id == target.person_id:
            relations.add(SELF)
        if not is_missing(target.family_id) and caller.family_id == target.family_id:
            relations.add(FAMILY)
        if not relations:
            groups = led_groups if led_groups is not None else store.groups_led_by(caller.person_id)
            for group in groups:
                if group.has_member(target.person_id):
                    relations.add(GROUP_LEADER)
                    break
            if GROUP_LEADER not in relations:
                for group in groups:
                    if cluster_chain_has(store, group.cluster_id, target.person_id):
                        relations.add(CLUSTER_LEADER)
                        break
        return cls(caller.person_id, caller.family_id, frozenset(relations))

    @property
    def related(self) -> bool:
        return bool(self.relations)


# ─────────────────────────────────────────────────────────────────────────────
# Policy and filter
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class VisibilityPolicy:
    """Uppercase wire field name -> permission key for one entity type."""

    entity: str
    object_type: str
    fields: Mapping[str, str]

    def key_for(self, field_name: str) -> Optional[str]:
        return self.fields.get(field_name.upper())


def load_policies(path: Union[str, Path, None] = None) -> dict[str, VisibilityPolicy]:
    """Load every entity policy from the YAML file.

    Raises:
        FileNotFoundError: If the policy file is missing
        ValueError: If an entry is malformed
    """
    policy_path = Path(path) if path else DEFAULT_POLICY_PATH
    with policy_path.open("r", encoding="utf-8") as handle:
        document = yaml.safe_load(handle) or {}

    policies = {}
    for entity, entry in document.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("fields"), dict):
            raise ValueError(f"Invalid visibility policy for {entity} in {policy_path}")
        fields_map = {str(name).upper(): str(key) for name, key in entry["fields"].items()}
        policies[entity] = VisibilityPolicy(entity, entry.get("object_type", arena.ObjectType.PERSON_FIELD), fields_map)
    logger.info("Loaded visibility policies %s from %s", sorted(policies), policy_path)
    return policies


class FieldVisibilityFilter:
    """Applies a VisibilityPolicy and the permission oracle to field names."""

    def __init__(self, policy: VisibilityPolicy, oracle: PermissionOracle):
        self.policy = policy
        self.oracle = oracle

    def should_include(self, caller: CallerContext, field_name: str, requested: IncludeFieldSpec) -> bool:
        """Decide one field for the target ``caller`` was built against."""
        if caller.related:
            return True
        key = self.policy.key_for(field_name)
        if key is None:
            return False
        if not self.oracle.allowed(self.policy.object_type, key, arena.OperationType.VIEW, caller.person_id):
            return False
        return requested.allows(field_name)

    def visible_fields(self, caller: CallerContext, field_names: Iterable[str],
                       requested: IncludeFieldSpec) -> set[str]:
        """Evaluate many fields, asking the oracle once per permission key."""
        if caller.related:
            return set(field_names)

        decisions: dict[str, bool] = {}
        visible = set()
        for name in field_names:
            key = self.policy.key_for(name)
            if key is None:
                continue
            if key not in decisions:
                decisions[key] = self.oracle.allowed(
                    self.policy.object_type, key, arena.OperationType.VIEW, caller.person_id
                )
            if decisions[key] and requested.allows(name):
                visible.add(name)
        return visible
