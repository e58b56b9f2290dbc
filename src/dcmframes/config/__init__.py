from .configuration import DcmFramesSettings

__all__ = ["DcmFramesSettings"]
