"""
Admin Module - Settings Service
=================================
Read/write helpers for the system_settings key-value table.
Environment values from config.settings are only the defaults.
"""

from sqlalchemy.orm import Session

from common.exceptions import ValidationError
from config.settings import FREE_DELIVERY_THRESHOLD, DELIVERY_DISCOUNT_PERCENT
from modules.admin.models import SystemSetting


DEFAULT_SETTINGS = {
    "free_delivery_threshold": (str(FREE_DELIVERY_THRESHOLD), "Bepul yetkazib berish chegarasi (so'm)"),
    "delivery_discount_percent": (str(DELIVERY_DISCOUNT_PERCENT), "Chegaradan oshganda yetkazib berish chegirmasi (%)"),
}


def get_setting_from_db(db: Session, key: str, default: str = "") -> str:
    """Fetch a system setting using an existing DB session."""
    setting = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    return setting.value if setting else default


def parse_int_setting(db: Session, key: str, default: int = 0) -> int:
    """
    Fetch a system setting and parse it as integer.
    Raises ValidationError if the stored value is not a number.
    """
    val = get_setting_from_db(db, key, str(default))
    try:
        return int(str(val).strip())
    except (ValueError, TypeError):
        raise ValidationError(f"Sozlama noto'g'ri: {key}={val!r}")


def set_setting(db: Session, key: str, value: str, description: str = None) -> SystemSetting:
    setting = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if setting:
        setting.value = value
    else:
        setting = SystemSetting(key=key, value=value, description=description)
        db.add(setting)
    db.flush()
    return setting


class DeliverySettingsService:

    def _validate(self, free_delivery_threshold: int, delivery_discount_percent: int):
        if free_delivery_threshold < 0:
            raise ValidationError("Chegara manfiy bo'lishi mumkin emas.")
        if not 0 <= delivery_discount_percent <= 100:
            raise ValidationError("Chegirma 0 dan 100 gacha bo'lishi kerak.")

    def get(self, db: Session) -> dict:
        """Stored (or default) values. Out-of-range values raise ValidationError."""
        threshold = parse_int_setting(db, "free_delivery_threshold", FREE_DELIVERY_THRESHOLD)
        percent = parse_int_setting(db, "delivery_discount_percent", DELIVERY_DISCOUNT_PERCENT)
        self._validate(threshold, percent)
        return {
            "free_delivery_threshold": threshold,
            "delivery_discount_percent": percent,
        }

    def update(self, db: Session, free_delivery_threshold: int, delivery_discount_percent: int) -> dict:
        self._validate(free_delivery_threshold, delivery_discount_percent)
        set_setting(db, "free_delivery_threshold", str(free_delivery_threshold),
                    DEFAULT_SETTINGS["free_delivery_threshold"][1])
        set_setting(db, "delivery_discount_percent", str(delivery_discount_percent),
                    DEFAULT_SETTINGS["delivery_discount_percent"][1])
        return self.get(db)


# Singleton
delivery_settings_service = DeliverySettingsService()
