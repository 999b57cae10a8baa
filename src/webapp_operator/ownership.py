from __future__ import annotations

from typing import Any

import kopf

from .errors import OwnershipLinkError


def _controller_ref(obj: dict[str, Any]) -> dict[str, Any] | None:
    for ref in (obj.get("metadata") or {}).get("ownerReferences") or []:
        if ref.get("controller"):
            return ref
    return None


def set_controller_reference(owner: dict[str, Any], owned: dict[str, Any]) -> None:
    """Mark ``owner`` as the controlling owner of ``owned`` (in place).

    Raises OwnershipLinkError when the link cannot be expressed: an incomplete
    owner, a cross-namespace link, or ``owned`` already controlled by another
    object. Re-applying the same link is a no-op.
    """
    meta = owner.get("metadata") or {}
    missing = [
        field
        for field, value in (
            ("apiVersion", owner.get("apiVersion")),
            ("kind", owner.get("kind")),
            ("metadata.name", meta.get("name")),
            ("metadata.uid", meta.get("uid")),
        )
        if not value
    ]
    if missing:
        raise OwnershipLinkError(f"owner is missing {', '.join(missing)}")

    owned_meta = owned.setdefault("metadata", {})
    owner_ns = meta.get("namespace")
    owned_ns = owned_meta.get("namespace")
    if owner_ns and owned_ns and owner_ns != owned_ns:
        raise OwnershipLinkError(
            f"cross-namespace owner references are not allowed: "
            f"owner in {owner_ns!r}, object in {owned_ns!r}"
        )

    existing = _controller_ref(owned)
    if existing is not None and existing.get("uid") != meta["uid"]:
        raise OwnershipLinkError(
            f"object is already controlled by {existing.get('kind')}/{existing.get('name')}"
        )

    kopf.append_owner_reference(owned, owner=owner, controller=True, block_owner_deletion=True)
