"""Permission oracle: answers "may this person do X to that object?".

Grants are stored per securable object as (subject type, subject id,
operation) triples. A subject is either a PERSON or a ROLE; role membership
is scoped to an organization.
"""
from __future__ import annotations

import logging
from typing import Protocol, Union

from arena_api.core.arena import ArenaStore
from arena_api.core.arena.entities import ObjectType, OperationType

logger = logging.getLogger(__name__)

SUBJECT_PERSON = "PERSON"
SUBJECT_ROLE = "ROLE"


class PermissionOracle(Protocol):
    def allowed(self, object_type: str, object_id: Union[int, str], operation: str, person_id: int) -> bool: ...


class StorePermissionOracle:
    """PermissionOracle reading grants and role membership from an ArenaStore."""

    def __init__(self, store: ArenaStore, organization_id: int):
        self.store = store
        self.organization_id = organization_id

    def allowed(self, object_type: str, object_id: Union[int, str], operation: str, person_id: int) -> bool:
        """Check a single operation.

        A direct PERSON grant wins; otherwise any ROLE grant held by one of
        the person's roles in the configured organization. No grant means
        no access.

        Args:
            object_type: One of ObjectType
            object_id: Securable object id (PersonField objects use the policy key)
            operation: OperationType.VIEW or OperationType.EDIT
            person_id: Caller

        Returns:
            True if allowed
        """
        grants = [g for g in self.store.permission_grants(object_type, object_id) if g.operation == operation]
        if not grants:
            return False

        if any(g.subject_type == SUBJECT_PERSON and g.subject_id == person_id for g in grants):
            return True

        role_grants = {g.subject_id for g in grants if g.subject_type == SUBJECT_ROLE}
        if not role_grants:
            return False
        roles = set(self.store.role_ids(self.organization_id, person_id))
        allowed = bool(role_grants & roles)
        if not allowed:
            logger.debug("Denied %s on %s:%s for person %s", operation, object_type, object_id, person_id)
        return allowed


def profile_allowed(oracle: PermissionOracle, profile_id: int, person_id: int,
                    operation: str = OperationType.VIEW) -> bool:
    return oracle.allowed(ObjectType.PROFILE, profile_id, operation, person_id)


def cluster_allowed(oracle: PermissionOracle, cluster_id: int, person_id: int,
                    operation: str = OperationType.VIEW) -> bool:
    return oracle.allowed(ObjectType.GROUP_CLUSTER, cluster_id, operation, person_id)


def attribute_editable(oracle: PermissionOracle, attribute_id: int, person_id: int) -> bool:
    return oracle.allowed(ObjectType.ATTRIBUTE, attribute_id, OperationType.EDIT, person_id)


def authorization_editable(oracle: PermissionOracle, client_id: int, person_id: int) -> bool:
    return oracle.allowed(ObjectType.OAUTH_AUTHORIZATION, client_id, OperationType.EDIT, person_id)
