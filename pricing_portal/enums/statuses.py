from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    client = "client"


class AccountStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    suspended = "suspended"


class RegistrationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class PriceChangeType(str, Enum):
    admin_update = "admin_update"
    client_custom = "client_custom"
    bulk_update = "bulk_update"
