"""
Constants, enums, and static values.
"""

from enum import Enum

VERIFICATION_THRESHOLD = 0.70
MAX_PATH_LENGTH = 500

MAX_IMAGE_BYTES = 10 * 1024 * 1024
# Base64 data URL of a MAX_IMAGE_BYTES image, plus room for the "data:...;base64," header
MAX_DATA_URL_LENGTH = -(-MAX_IMAGE_BYTES // 3) * 4 + 64

ATTEMPTS_TABLE = "VerificationAttempts"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ImageKind(str, Enum):
    """Which side of a verification an image belongs to."""

    DOCUMENT = "document"
    SELFIE = "selfie"


class VerificationStep(str, Enum):
    """Verification workflow steps."""

    EVALUATION = "evaluation"
    UPLOAD = "upload"
    PERSIST = "persist"


class VerificationMessage(str, Enum):
    """Fixed outcome messages."""

    NO_FACE = "Could not detect face in one or both images"
    NO_PEOPLE = "One or both images do not contain detectable people"


# Content type -> file extension used for storage keys
IMAGE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/bmp": "bmp",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/tiff": "tiff",
}
