"""Logic for walking a loader chain and listing the locators it exposes."""

import logging
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger(__name__)


def loader_label(loader: Any) -> str:
    """Return a short human readable label for a loader node."""
    name = getattr(loader, "name", None)
    kind = type(loader).__name__
    return f"{kind}({name})" if name else kind


def iter_loader_chain(loader: Any) -> Iterator[Any]:
    """Yield the loader and then each of its parents, child first."""
    node = loader
    while node is not None:
        yield node
        node = getattr(node, "parent", None)


def iter_loader_levels(loader: Any) -> Iterator[tuple[Any, list[str]]]:
    """Yield ``(node, locators)`` for every enumerable node in the chain.

    Nodes without ``get_urls`` are skipped, and so are nodes whose
    ``get_urls`` fails. Locators keep their declaration order.
    """
    for node in iter_loader_chain(loader):
        get_urls = getattr(node, "get_urls", None)
        if not callable(get_urls):
            logger.debug("Class loader %s does not expose URLs", loader_label(node))
            continue
        try:
            urls = [str(u) for u in get_urls()]
        except Exception:
            logger.warning(
                "Class loader %s refused to list its URLs",
                loader_label(node),
                exc_info=True,
            )
            continue
        logger.debug("Collecting from class loader %s", loader_label(node))
        yield node, urls


def enumerate_sources(loader: Any) -> list[tuple[str, Any]]:
    """Return every ``(locator, loader)`` pair of the chain in visibility order."""
    return [(url, node) for node, urls in iter_loader_levels(loader) for url in urls]
