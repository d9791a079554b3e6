class ImagePipelineError(Exception):
    """Base for failures that are reported per file instead of failing a batch."""

    def __init__(self, message: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.filename = filename


class ConversionError(ImagePipelineError):
    pass


class ThumbnailError(ImagePipelineError):
    pass


class StorageError(ImagePipelineError):
    pass


class UnsupportedImageError(ImagePipelineError):
    pass
