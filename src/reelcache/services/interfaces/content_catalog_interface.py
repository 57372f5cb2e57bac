"""
Abstract Base Class for content catalog queries.

The media cache only needs two read-only answers from the content layer:
which filenames are critical and which filenames active records reference.
This interface keeps that boundary narrow, enabling:
- Testability via static or mock implementations
- Swapping the JSON snapshot reader for the database reader
- Clear API boundaries for type checking
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ...models.catalog import CatalogAsset


class ContentCatalogInterface(ABC):
    """
    Abstract interface for the content catalog consumed by the media cache.

    Examples
    --------
    >>> class FixedCatalog(ContentCatalogInterface):
    ...     async def critical_filenames(self) -> List[str]:
    ...         return ["hero1.mp4"]
    ...     async def catalog_assets(self) -> List[CatalogAsset]:
    ...         return []
    """

    @abstractmethod
    async def critical_filenames(self) -> List[str]:
        """
        List the critical video filenames.

        Critical assets are eagerly cached at startup and never removed by
        reconciliation.

        Returns
        -------
        List[str]
            Video filenames, deduplicated, in configuration order.
        """
        pass

    @abstractmethod
    async def catalog_assets(self) -> List[CatalogAsset]:
        """
        List the assets referenced by active content records.

        Returns
        -------
        List[CatalogAsset]
            Filename and kind of every referenced video and image,
            deduplicated per kind.

        Raises
        ------
        CatalogUnavailable
            If the underlying source cannot be read.
        """
        pass

    async def aclose(self) -> None:
        """Release resources held by the catalog (no-op by default)."""
        return None
