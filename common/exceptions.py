"""
StroyMarket - Custom Exceptions
================================
Business-level exceptions that can be caught and converted to HTTP responses.
Each class carries the HTTP status it maps to.
"""


class StroyMarketError(Exception):
    """Base exception for all business logic errors."""
    status_code = 400

    def __init__(self, message: str = "Xatolik yuz berdi."):
        self.message = message
        super().__init__(self.message)


class NotFoundError(StroyMarketError):
    """Raised when a requested resource doesn't exist."""
    status_code = 404


class ValidationError(StroyMarketError):
    """Raised for invalid input at the business level."""
    pass


class CategoryPathError(StroyMarketError):
    """Raised when a category path could not be created. Nothing from the path is persisted."""
    def __init__(self, path: str = ""):
        msg = f"Kategoriya yaratishda xatolik yuz berdi: {path}" if path else "Kategoriya yaratishda xatolik yuz berdi."
        super().__init__(msg)


class CategoryMoveError(StroyMarketError):
    """Raised when a category would become its own ancestor."""
    def __init__(self):
        super().__init__("Kategoriyani o'zining ichiga ko'chirib bo'lmaydi.")


class ProductCountUnavailableError(StroyMarketError):
    """Raised when the product count query fails (distinct from a count of zero)."""
    status_code = 503

    def __init__(self):
        super().__init__("Mahsulotlar sonini olish imkoni bo'lmadi.")


class DeliveryUnavailableError(StroyMarketError):
    """Raised at checkout when the delivery fee could not be computed."""
    status_code = 503

    def __init__(self):
        super().__init__("Yetkazib berish narxini hisoblab bo'lmadi. Keyinroq urinib ko'ring.")
