"""
Circular browsing index over the feed.

Pure index bookkeeping: the feed store resizes it whenever the candidate
list is replaced or shrinks. Rendering positions are derived with
``display_offset`` and never stored here.
"""


class NavigationIndex:
    def __init__(self, length: int = 0):
        self.length = 0
        self.current_index = 0
        self.resize(length)

    @property
    def current(self):
        """Current index, or None while the feed is empty."""
        return self.current_index if self.length else None

    def next(self):
        if self.length == 0:
            return None
        self.current_index = (self.current_index + 1) % self.length
        return self.current_index

    def previous(self):
        if self.length == 0:
            return None
        self.current_index = (self.current_index - 1) % self.length
        return self.current_index

    def reset(self, length: int):
        """The list was replaced: start over at the first candidate."""
        self.length = length
        self.current_index = 0

    def resize(self, length: int):
        """The list changed size: clamp the index into the new range."""
        if length < 0:
            raise ValueError(f"length must be >= 0, got {length}")
        self.length = length
        if self.current_index >= length:
            self.current_index = max(0, length - 1)

    def go_to(self, index: int):
        if not 0 <= index < self.length:
            raise IndexError(f"index {index} out of range for {self.length} candidates")
        self.current_index = index


def display_offset(index: int, current_index: int, length: int) -> int:
    """
    Signed position of card ``index`` relative to the current card, folded
    into (-length/2, length/2] so neighbours on both sides stay close.
    """
    if length <= 0:
        raise ValueError("display_offset needs a non-empty list")
    offset = (index - current_index) % length
    if offset > length / 2:
        offset -= length
    return offset
