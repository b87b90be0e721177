"""
Documentation metadata attached to schema nodes.

The metadata is merged over the node's translated fragment, so it can carry a
`description` as well as any pass-through Swagger keyword (`minimum`, `example`,
`maxLength`, ...). Metadata keys win over structural keys of the same name.
"""

from typing import Any, Dict, Mapping, Optional

from swagger_schema.schema_nodes import Described


def describe(node: Any, description: Optional[str] = None, **extras: Any) -> Described:
    """Attach a description and extra keywords to a node.

    Describing an already described node merges the new metadata over the old
    one instead of stacking wrappers.
    """
    meta: Dict[str, Any] = {}
    if description is not None:
        meta["description"] = description
    meta.update(extras)

    if isinstance(node, Described):
        merged = node.meta
        merged.update(meta)
        return Described(node.inner, tuple(merged.items()))
    return Described(node, tuple(meta.items()))


def attach_meta(node: Any, description: Optional[str] = None, extras: Optional[Mapping[str, Any]] = None) -> Described:
    return describe(node, description, **dict(extras or {}))


def read_meta(node: Any) -> Dict[str, Any]:
    """Metadata attached to a node, {} if none."""
    if isinstance(node, Described):
        return node.meta
    return {}
