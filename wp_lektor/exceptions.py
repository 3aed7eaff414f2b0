class ExportError(Exception):
    """Base class for errors raised while exporting a site."""


class SourceError(ExportError):
    """The WXR file is missing or cannot be parsed."""


class OutputNotWritableError(ExportError):
    """The temporary export location cannot be written to."""


class ItemExportError(ExportError):
    def __init__(self, item_id, message):
        super().__init__(f"item {item_id}: {message}")
        self.item_id = item_id


class MediaCopyError(ExportError):
    """A featured image or uploads entry could not be copied."""


class PackagingError(ExportError):
    def __init__(self, message, directory=None):
        super().__init__(message)
        self.directory = directory
