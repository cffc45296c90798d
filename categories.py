from typing import Optional, Union

from rapidfuzz.distance import Levenshtein

from models import TransactionType

OTHER = "Other"

INCOME_CATEGORIES = ("Income-Allowance", "Rent Gain", "Gifts", OTHER)
EXPENSE_CATEGORIES = (
    OTHER,
    "Housing",
    "Utilities",
    "Groceries",
    "Transportation",
    "Insurance",
    "Healthcare",
    "Minimum debt payments",
    "Childcare",
    "Dining out",
    "Entertainment",
    "Hobbies",
    "Clothing",
    "Travel/vacations",
    "Personal care",
    "Gifts/subscriptions",
    "Investments",
)


class CategoryRequired(ValueError):
    pass


class CategoryAmbiguous(ValueError):
    pass


def categories_for(txn_type: Union[str, TransactionType]) -> tuple[str, ...]:
    if TransactionType(txn_type) == TransactionType.income:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def search_categories(
    txn_type: Union[str, TransactionType], term: Optional[str] = None
) -> list[str]:
    needle = (term or "").strip().lower()
    return [name for name in categories_for(txn_type) if needle in name.lower()]


def resolve_category(
    txn_type: Union[str, TransactionType],
    selected: Optional[str],
    custom_name: Optional[str] = None,
) -> str:
    """Turn a picked (or typed) category into the name stored on the transaction.

    ``Other`` takes the custom name when one is given. A typed name one edit
    away from exactly one listed category snaps to it; anything further away
    is kept as typed.
    """
    name = (selected or "").strip()
    if not name:
        raise CategoryRequired("Please select a category")
    if name == OTHER:
        return (custom_name or "").strip() or OTHER

    options = categories_for(txn_type)
    lowered = name.lower()
    for option in options:
        if option.lower() == lowered:
            return option

    best_distance: Optional[int] = None
    best: list[str] = []
    for option in options:
        dist = int(Levenshtein.distance(lowered, option.lower()))
        if best_distance is None or dist < best_distance:
            best_distance = dist
            best = [option]
        elif dist == best_distance:
            best.append(option)

    if best_distance is not None and best_distance <= 1:
        if len(best) > 1:
            matches = ", ".join(sorted(best))
            raise CategoryAmbiguous(
                f"Category '{name}' is ambiguous; matches: {matches}"
            )
        return best[0]
    return name
