from dataclasses import dataclass

from app.services.validation.exception import bad_request_exception

ALLOWED_SERIES_WEEKS = (1, 2, 4, 8)


@dataclass(frozen=True)
class SeriesPricing:
    regular_price: float
    discount_percent: int
    discounted_total: float
    per_lesson_price: float

    @property
    def savings(self) -> float:
        return self.regular_price - self.discounted_total

    def to_dict(self) -> dict:
        return {
            "regular_price": self.regular_price,
            "discount_percent": self.discount_percent,
            "discounted_total": self.discounted_total,
            "per_lesson_price": self.per_lesson_price,
            "savings": self.savings,
        }


def get_discount_percent(weeks: int) -> int:
    """Descuento escalonado: 8+ semanas 15%, 4+ semanas 10%, el resto 5%."""
    if weeks >= 8:
        return 15
    if weeks >= 4:
        return 10
    return 5


def is_allowed_series_weeks(weeks: int) -> bool:
    return weeks in ALLOWED_SERIES_WEEKS


async def validate_series_weeks(weeks: int) -> None:
    if not is_allowed_series_weeks(weeks):
        await bad_request_exception(
            f"Weeks must be one of {', '.join(str(w) for w in ALLOWED_SERIES_WEEKS)}"
        )


def calculate_series_pricing(hourly_rate: float, weeks: int) -> SeriesPricing:
    # El 400 para el cliente lo lanza `validate_series_weeks`
    if not is_allowed_series_weeks(weeks):
        raise ValueError(f"Unsupported series length: {weeks}")

    discount_percent = get_discount_percent(weeks)
    regular_price = hourly_rate * weeks
    discounted_total = regular_price * (1 - discount_percent / 100)
    per_lesson_price = discounted_total / weeks

    return SeriesPricing(
        regular_price=regular_price,
        discount_percent=discount_percent,
        discounted_total=discounted_total,
        per_lesson_price=per_lesson_price,
    )


def calculate_single_price(hourly_rate: float, duration_minutes: int) -> float:
    return hourly_rate * duration_minutes / 60


def convert_to_cents(amount: float) -> int:
    return int(round(amount * 100))
