"""
Secondary index provisioning.
Profiles looked up by any attribute other than the document id go through a
``by_<attribute>`` view that emits the whole document keyed by that attribute.
"""
import re
from typing import Dict, Iterable

import structlog

from ..interfaces.store_interface import IDocumentStore

logger = structlog.get_logger()

VIEW_PREFIX = "by_"

_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_MAP_TEMPLATE = (
    "function (doc) {{ "
    "if (doc['{name}'] !== undefined && doc['{name}'] !== null) {{ emit(doc['{name}'], doc); }} "
    "}}"
)


def view_name_for(attribute: str) -> str:
    """Name of the view indexing ``attribute``."""
    return f"{VIEW_PREFIX}{attribute}"


def build_view_definitions(attributes: Iterable[str]) -> Dict[str, Dict[str, str]]:
    """
    Build map functions for the given attribute names.

    Raises:
        ValueError: If an attribute name cannot be used as a JavaScript property
    """
    views = {}
    for name in attributes:
        if not _ATTRIBUTE_NAME.match(name):
            raise ValueError(f"Invalid attribute name for a view: {name!r}")
        views[view_name_for(name)] = {"map": _MAP_TEMPLATE.format(name=name)}
    return views


async def ensure_profile_views(
    connector: IDocumentStore,
    attributes: Iterable[str],
    design_doc_id: str,
) -> str:
    """Create or update the design document holding the profile views."""
    views = build_view_definitions(attributes)
    rev = await connector.put_design_document(design_doc_id, views)
    logger.info("Profile views ensured", design_doc_id=design_doc_id, views=sorted(views))
    return rev
