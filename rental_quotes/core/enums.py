from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"

    def __str__(self):
        return self.value


class Season(str, Enum):
    PEAK = "Peak"
    OFF_PEAK = "Off Peak"

    def __str__(self):
        return self.value


class RentalType(str, Enum):
    SELF_DRIVE = "self_drive"
    CHAUFFEUR = "chauffeur"
    TRANSFER = "transfer"

    def __str__(self):
        return self.value


class VehicleStatus(str, Enum):
    AVAILABLE = "Available"
    ON_HIRE = "On Hire"
    GROUNDED = "Grounded"

    def __str__(self):
        return self.value


class BookingStatus(str, Enum):
    DRAFT = "Draft"
    ADVANCE_PAYMENT_NOT_PAID = "Advance Payment Not Paid"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    def __str__(self):
        return self.value


BLOCKING_BOOKING_STATUSES = frozenset({
    BookingStatus.ACTIVE,
    BookingStatus.ADVANCE_PAYMENT_NOT_PAID,
})


class QuoteStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ACCEPTED = "Accepted"
    CONVERTED = "Converted"
    EXPIRED = "Expired"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    SAVE_QUOTE = "save_quote"
    EXTEND_QUOTE = "extend_quote"
    UPDATE_CATEGORY_PRICING = "update_category_pricing"
    CONVERT_QUOTE = "convert_quote"
    DELETE_QUOTE = "delete_quote"
    UPDATE_PRICING_CONFIG = "update_pricing_config"
    LOGIN = "login"

    def __str__(self):
        return self.value
