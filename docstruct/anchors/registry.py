class AnchorRegistry:
    """Set of anchor markers already issued during one analysis run.

    A registry belongs to exactly one run; create a new one (or call
    ``reset``) before analyzing another document.
    """

    def __init__(self) -> None:
        self._issued: dict[str, None] = {}

    def register(self, anchor: str) -> bool:
        """Record ``anchor``; return False if it was already issued."""
        if anchor in self._issued:
            return False
        self._issued[anchor] = None
        return True

    def reset(self) -> None:
        self._issued.clear()

    @property
    def issued(self) -> list[str]:
        return list(self._issued)

    def __contains__(self, anchor: object) -> bool:
        return anchor in self._issued

    def __len__(self) -> int:
        return len(self._issued)
