# basket_compare/filters/listing_validator.py

"""Listing validation: keep placeholder and malformed data out of merging."""

import logging

from basket_compare.models.listing import RawListing

logger = logging.getLogger("basket_compare.filters")


class ListingValidator:
    """Drop listings that must never reach the deduplicator."""

    @staticmethod
    def drop_synthetic(
        listings: list[RawListing],
    ) -> tuple[list[RawListing], int]:
        """Remove listings flagged ``is_synthetic``.

        Returns the real listings and the count of dropped placeholders.
        """
        real = [item for item in listings if not item.is_synthetic]
        dropped = len(listings) - len(real)
        if dropped:
            logger.info(
                "Dropped %d synthetic placeholder listings", dropped
            )
        return real, dropped

    @staticmethod
    def validate(
        listings: list[RawListing],
    ) -> tuple[list[RawListing], int]:
        """Drop listings with empty/whitespace names or prices.

        Returns the valid listings and the count of dropped items.
        """
        valid: list[RawListing] = []
        dropped = 0

        for listing in listings:
            if not listing.name.strip():
                logger.debug(
                    "Dropped listing with empty name "
                    "(source=%s, url=%s)",
                    listing.source.value,
                    listing.url,
                )
                dropped += 1
                continue
            if not listing.raw_price.strip():
                logger.debug(
                    "Dropped listing with empty price "
                    "(name=%s, source=%s)",
                    listing.name,
                    listing.source.value,
                )
                dropped += 1
                continue
            valid.append(listing)

        if dropped:
            logger.info(
                "Validation dropped %d invalid listings",
                dropped,
            )

        return valid, dropped
