from .raw import NOT_SET, Callback, RawConnection, RawPool

__all__ = ("NOT_SET", "Callback", "RawConnection", "RawPool")
