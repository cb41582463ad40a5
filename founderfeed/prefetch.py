"""Low-water-mark rule for background fetch-more."""

DEFAULT_LOW_WATER_MARK = 5


class PrefetchPolicy:
    """
    Decides whether a removal should trigger a background Append.

    Evaluated synchronously after every removal. The caller must mark the
    Append as in flight before yielding to the loop so that the next removal
    in the same breach sees ``is_loading_more`` and does not schedule again.
    """

    def __init__(self, low_water_mark: int = DEFAULT_LOW_WATER_MARK):
        if low_water_mark < 0:
            raise ValueError(f"low_water_mark must be >= 0, got {low_water_mark}")
        self.low_water_mark = low_water_mark

    def should_prefetch(self, remaining: int, has_more: bool, is_loading_more: bool) -> bool:
        return remaining <= self.low_water_mark and has_more and not is_loading_more
