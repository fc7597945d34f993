class UserFacingError(Exception):
    """Error safe to display in the UI."""


class MedHeatError(UserFacingError):
    """Base class for every error raised by the overlay pipeline."""


class MedHeatIOError(MedHeatError, OSError):
    """A file is missing, unreadable or ends before the expected payload."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class FormatError(MedHeatError, ValueError):
    """Malformed heatmap data, unknown extension or unimplemented format."""


class UnsupportedFormat(MedHeatError, ValueError):
    """Bit depth or sample count of a base image that cannot be decoded."""


class DimensionMismatch(MedHeatError, ValueError):
    """Declared dimensions do not agree with the actual buffer or layer size."""


class ValidationError(MedHeatError, ValueError):
    """Invalid run option (opacity, colormap or normalization name)."""


def friendly_error(message: str) -> str:
    return f"Error: {message}"
