class WatermarkError(Exception):
    """Base class for failures inside the watermark pipeline."""


class DecodeError(WatermarkError):
    """Source or watermark image could not be read or decoded."""


class CompositeError(WatermarkError):
    """Resizing or blending failed."""


class WriteError(WatermarkError):
    """Destination file could not be written."""


class UnsupportedFormatError(WatermarkError):
    """Input file is not a JPEG."""


class ConfigError(Exception):
    """Configuration file is malformed."""
