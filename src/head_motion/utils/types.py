class EndToken:
    """Sentinel placed on a source queue once the source has stopped producing."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "<EndToken>"

_END = EndToken()
