from typing import List, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 6


class PaginationCursor:
    """Visible-count cursor for infinite scrolling.

    ``advance`` is called when the sentinel at the bottom of the rendered list
    enters the viewport. The count never exceeds the current result size.
    """

    def __init__(self, total: int = 0, initial: int = DEFAULT_PAGE_SIZE, step: int = DEFAULT_PAGE_SIZE) -> None:
        if initial < 1 or step < 1:
            raise ValueError("initial and step must be positive")
        self.initial = initial
        self.step = step
        self.total = total
        self.visible = min(initial, total)

    def reset(self, total: int) -> None:
        self.total = max(total, 0)
        self.visible = min(self.initial, self.total)

    def resize(self, total: int) -> None:
        self.total = max(total, 0)
        self.visible = min(self.visible, self.total)

    def advance(self) -> int:
        self.visible = min(self.visible + self.step, self.total)
        return self.visible

    @property
    def end_of_list(self) -> bool:
        return self.visible >= self.total

    def window(self, items: Sequence[T]) -> List[T]:
        return list(items[: self.visible])
