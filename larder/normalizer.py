"""Ingredient name normalization.

Gives recipe ingredients, kitchen inventory and shopping list items one
shared identity space: every free-text name is reduced to a canonical
string so that "2 cups chopped tomatoes", "Tomatoes" and "tomato" all
compare equal.

The lookup tables below are closed, hand-curated dictionaries; nothing
here learns or guesses synonyms it has not been told about.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from types import MappingProxyType
from typing import Protocol, TypeVar

from .models import Category

# Phrase-level synonyms, checked against the whole phrase. Keys are in
# cleaned form (lowercase, single spaces); values must normalize to
# themselves.
INGREDIENT_ALIASES = MappingProxyType({
    # Vegetables
    "tomatoes": "tomato",
    "potatoes": "potato",
    "onions": "onion",
    "red onions": "red onion",  # colour kept: a different ingredient
    "yellow onions": "yellow onion",
    "white onions": "white onion",
    "carrots": "carrot",
    "cucumbers": "cucumber",
    # Bell peppers. Plain "pepper" is left alone, it may be black pepper.
    "bell peppers": "bell pepper",
    "green peppers": "bell pepper",
    "red peppers": "bell pepper",
    "yellow peppers": "bell pepper",
    "orange peppers": "bell pepper",
    "green pepper": "bell pepper",
    "red pepper": "bell pepper",
    "yellow pepper": "bell pepper",
    "orange pepper": "bell pepper",
    "capsicum": "bell pepper",
    # Fruits
    "apples": "apple",
    "bananas": "banana",
    "oranges": "orange",
    "berries": "berry",
    "strawberries": "strawberry",
    "blueberries": "blueberry",
    "raspberries": "raspberry",
    # Proteins
    "chicken breasts": "chicken breast",
    "chicken thighs": "chicken thigh",
    "ground beef": "beef",
    "pork chops": "pork chop",
    "eggs": "egg",
    # Dairy
    "cheeses": "cheese",
    "cheddar cheese": "cheddar",
    "mozzarella cheese": "mozzarella",
    # Grains
    "rices": "rice",
    "pastas": "pasta",
    "noodles": "noodle",
    "breads": "bread",
    # Herbs and spices
    "garlic cloves": "garlic",
    "ginger root": "ginger",
    "basil leaves": "basil",
    "basil leaf": "basil",
    "cilantro leaves": "cilantro",
    "cilantro leaf": "cilantro",
    # Common variations
    "scallions": "green onion",
    "scallion": "green onion",
    "spring onions": "green onion",
    "spring onion": "green onion",
    "roma tomatoes": "tomato",
    "roma tomato": "tomato",
    "cherry tomatoes": "tomato",
    "cherry tomato": "tomato",
    "grape tomatoes": "tomato",
    "grape tomato": "tomato",
})

# Tokens that never carry ingredient identity.
MEASUREMENT_WORDS = frozenset({
    # Units
    "cup", "cups", "tablespoon", "tablespoons", "tbsp", "teaspoon",
    "teaspoons", "tsp", "pound", "pounds", "lb", "lbs", "ounce", "ounces",
    "oz", "gram", "grams", "g", "kilogram", "kilograms", "kg", "milliliter",
    "milliliters", "ml", "liter", "liters", "l", "pinch", "dash", "slice",
    "slices", "piece", "pieces", "can", "cans", "jar", "jars", "package",
    "packages", "pkg", "bunch", "bunches", "clove", "cloves", "head", "heads",
    "inch", "inches", "cm", "mm", "centimeter", "centimeters", "millimeter",
    "millimeters",
    # Spelled-out numbers
    "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen", "twenty", "thirty", "forty",
    "fifty", "hundred", "thousand",
    # Fractions
    "half", "halves", "third", "thirds", "quarter", "quarters", "eighth",
    "eighths",
    # Preparation
    "whole", "chopped", "diced", "sliced", "minced", "grated", "finely",
    "coarsely", "thinly", "thickly", "crushed", "shredded", "raw", "cooked",
    "roasted", "boiled", "steamed", "baked", "fried",
    # Size
    "large", "medium", "small", "about", "approximately",
    # State
    "fresh", "frozen",
    # Stopwords
    "of", "a", "an", "the", "to", "and", "or", "with", "for",
})

_IRREGULAR_PLURALS = MappingProxyType({
    "leaves": "leaf",
    "knives": "knife",
    "wives": "wife",
    "lives": "life",
    "loaves": "loaf",
    "shelves": "shelf",
    "thieves": "thief",
    "wolves": "wolf",
    "tomatoes": "tomato",
    "potatoes": "potato",
    "avocadoes": "avocado",
    "mangoes": "mango",
    "heroes": "hero",
    "echoes": "echo",
})

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_NUMERIC = re.compile(r"^\d+(\.\d+)?$")


def singularize(word: str) -> str:
    """Reduce a single plural token to its singular form.

    Irregular plurals are looked up first, then a fixed list of suffix
    rules is applied. A rule that would leave nothing keeps the word.
    """
    irregular = _IRREGULAR_PLURALS.get(word)
    if irregular is not None:
        return irregular

    if word.endswith("oes"):
        stem = word[:-2]
    elif word.endswith("ies"):
        stem = word[:-3] + "y"
    elif word.endswith("ves"):
        stem = word[:-3] + "f"
    elif word.endswith(("ses", "shes", "ches", "xes")):
        stem = word[:-2]
    elif word.endswith("s") and not word.endswith(("ss", "us")):
        stem = word[:-1]
    else:
        stem = word
    return stem or word


def _clean(raw: str) -> str:
    text = _PUNCTUATION.sub(" ", raw.lower())
    return _WHITESPACE.sub(" ", text).strip()


def _is_noise(token: str) -> bool:
    return bool(_NUMERIC.match(token)) or token in MEASUREMENT_WORDS


def _normalize_phrase(phrase: str) -> str:
    # The alias table is consulted before filtering, after filtering and
    # after singularizing: "green peppers" must hit before "green" is
    # judged, "2 cups tomatoes" only after the measurement is gone.
    alias = INGREDIENT_ALIASES.get(phrase)
    if alias is not None:
        return alias

    words = [w for w in phrase.split(" ") if not _is_noise(w)]
    filtered = " ".join(words)
    alias = INGREDIENT_ALIASES.get(filtered)
    if alias is not None:
        return alias

    singular = " ".join(singularize(w) for w in words)
    alias = INGREDIENT_ALIASES.get(singular)
    if alias is not None:
        return alias

    return singular or phrase


def normalize(raw: str) -> str:
    """Return the canonical identity for a free-text ingredient name.

    Never raises. Non-empty input never yields an empty identity: input
    made only of punctuation comes back lowercased and trimmed, and input
    made only of quantities and units comes back in its cleaned form.
    The result is a fixed point, so ``normalize(normalize(x)) ==
    normalize(x)``.

    Examples:
        >>> normalize("2 cups chopped tomatoes")
        'tomato'
        >>> normalize("Green Peppers")
        'bell pepper'
    """
    if not raw:
        return ""
    phrase = _clean(raw)
    if not phrase:
        return raw.strip().lower()

    while True:
        nxt = _normalize_phrase(phrase)
        if nxt == phrase:
            return phrase
        phrase = nxt


def ingredients_match(first: str, second: str) -> bool:
    """Check whether two names resolve to the same canonical identity."""
    return normalize(first) == normalize(second)


def normalize_list(names: Iterable[str]) -> dict[str, str]:
    """Normalize a batch of names, keyed by the raw input."""
    return {name: normalize(name) for name in names}


class _Named(Protocol):
    name: str
    canonical_name: str | None


T = TypeVar("T", bound=_Named)


def find_matching_ingredient(name: str, items: Iterable[T]) -> T | None:
    """Find the first item sharing ``name``'s canonical identity.

    Items without a stored identity are normalized on the fly.
    """
    target = normalize(name)
    for item in items:
        if item.canonical_name and item.canonical_name == target:
            return item
        if normalize(item.name) == target:
            return item
    return None


# Whole-identity overrides checked before the token keywords below.
_CATEGORY_PHRASES: dict[str, Category] = {
    "black pepper": Category.PANTRY,
    "white pepper": Category.PANTRY,
    "peanut butter": Category.PANTRY,
    "soy sauce": Category.PANTRY,
    "olive oil": Category.PANTRY,
    "coconut milk": Category.PANTRY,
    "chicken stock": Category.PANTRY,
    "chicken broth": Category.PANTRY,
    "beef broth": Category.PANTRY,
    "green onion": Category.FRIDGE,
    "ice cream": Category.FRIDGE,
}

# Token → category keywords, in priority order.
_CATEGORY_KEYWORDS: dict[Category, frozenset[str]] = {
    Category.OTHER: frozenset({
        "foil", "towel", "napkin", "soap", "detergent", "sponge", "bag",
        "wrap", "battery", "tissue", "candle",
    }),
    Category.FRIDGE: frozenset({
        "milk", "cheese", "cheddar", "mozzarella", "parmesan", "butter",
        "yogurt", "cream", "egg", "tofu", "chicken", "beef", "pork", "lamb",
        "turkey", "bacon", "ham", "sausage", "fish", "salmon", "tuna",
        "shrimp", "lettuce", "spinach", "kale", "tomato", "cucumber",
        "carrot", "celery", "broccoli", "zucchini", "mushroom", "bell",
        "berry", "strawberry", "blueberry", "raspberry", "grape", "lemon",
        "lime", "cilantro", "parsley", "basil", "juice",
    }),
    Category.PANTRY: frozenset({
        "rice", "flour", "sugar", "salt", "pepper", "pasta", "noodle",
        "spaghetti", "bread", "oat", "cereal", "bean", "lentil", "chickpea",
        "oil", "vinegar", "honey", "syrup", "sauce", "stock", "broth",
        "cinnamon", "cumin", "paprika", "oregano", "thyme", "vanilla",
        "baking", "yeast", "cracker", "chip", "nut", "almond", "walnut",
        "peanut", "coffee", "tea", "potato", "onion", "garlic",
    }),
}


def guess_category(name: str) -> Category:
    """Guess where an ingredient is kept from its canonical identity.

    Unknown ingredients default to the fridge.
    """
    identity = normalize(name)
    phrase_hit = _CATEGORY_PHRASES.get(identity)
    if phrase_hit is not None:
        return phrase_hit
    tokens = set(identity.split())
    for category, keywords in _CATEGORY_KEYWORDS.items():
        if tokens & keywords:
            return category
    return Category.FRIDGE
