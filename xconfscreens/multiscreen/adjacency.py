"""Regeneration of a layout's screen adjacency list"""

import logging

from xconfscreens.xconfig.generate import screenAdjacencies_assign
from xconfscreens.xconfig.model import Adjacency, Configuration, Layout, adjacencyList_free

logger = logging.getLogger(__name__)


def adjacencies_create(config: Configuration, layout: Layout) -> None:
    """
    Add one adjacency per screen to a layout that has none

    Adjacencies are numbered 0..N-1 in screen list order and then placed
    by screenAdjacencies_assign.

    Args:
        config: Document providing the screens
        layout: Layout whose adjacency list is empty

    Raises:
        ValueError: If the layout still has adjacencies
    """
    if layout.adjacencies:
        raise ValueError(f"Layout '{layout.identifier}' already has adjacencies")

    for scrnum, screen in enumerate(config.screens):
        layout.adjacencies.append(
            Adjacency(scrnum=scrnum, screen_name=screen.identifier, screen=screen)
        )

    screenAdjacencies_assign(layout)


def adjacencies_rebuild(config: Configuration, layout: Layout) -> None:
    """Discard a layout's adjacencies and recreate them from the screen list"""
    adjacencyList_free(layout)
    adjacencies_create(config, layout)
    logger.debug(f"Layout '{layout.identifier}' now has {len(layout.adjacencies)} screen(s)")
