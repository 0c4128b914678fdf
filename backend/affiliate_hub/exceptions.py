"""Domain exceptions raised by the ingestion pipeline."""


class InvalidJobTransition(Exception):
    """Raised when a scrape job is moved out of a state it cannot leave."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move scrape job from '{current}' to '{requested}'")


class ExtractionError(Exception):
    """Browser could not be launched or the listing never materialized."""
