"""Error taxonomy for the POS system"""
from enum import Enum


class PosError(Exception):
    """Base class for all POS errors"""


class ModelLoadError(PosError):
    """Classifier runtime or model artifact could not be loaded"""


class ModelNotLoadedError(PosError):
    """Inference was attempted before the model finished loading"""

    def __init__(self, message: str = "Model not loaded"):
        super().__init__(message)


class InferenceError(PosError):
    """Preprocessing or prediction failed for a frame"""


class PersistenceError(PosError):
    """Reading or writing local storage failed"""


class ExportError(PosError):
    """An export file could not be produced"""


class SessionError(PosError):
    """A session action was requested while its preconditions are unmet"""


class CameraErrorKind(str, Enum):
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    BUSY = "busy"
    SETTINGS = "settings"
    UNKNOWN = "unknown"


CAMERA_ERROR_MESSAGES = {
    CameraErrorKind.PERMISSION: "Camera permission denied. Please allow access to the video device.",
    CameraErrorKind.NOT_FOUND: "No camera found. Please connect a camera and try again.",
    CameraErrorKind.BUSY: "Camera is in use by another application. Please close other apps using the camera.",
    CameraErrorKind.SETTINGS: "Camera does not support the requested settings.",
}


class CameraAccessError(PosError):
    """Camera could not be opened; kind selects the user-facing message"""

    def __init__(self, kind: CameraErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        if kind in CAMERA_ERROR_MESSAGES:
            self.message = CAMERA_ERROR_MESSAGES[kind]
        else:
            self.message = f"Camera error: {detail or 'Unknown error'}"
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": True, "type": self.kind.value, "message": self.message}
