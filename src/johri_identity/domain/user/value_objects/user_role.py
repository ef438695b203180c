from enum import Enum


class UserRole(str, Enum):
    """Closed set of marketplace roles.

    OWNER is the super-admin of the platform, JEWELER a seller and VIEWER an
    end-user that signs in with a phone OTP or Google.
    """

    OWNER = "owner"
    ADMIN = "admin"
    JEWELER = "jeweler"
    VIEWER = "viewer"
