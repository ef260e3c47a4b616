from typing import Iterable


def has_role(identity: dict, allowed_roles: Iterable[str]) -> bool:
    """Capability check, independent of how roles are stored on the user."""
    return identity.get("role") in set(allowed_roles)
