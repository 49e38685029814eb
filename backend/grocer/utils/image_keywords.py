"""Keyword → stock photo lookup used when no image search backend answers.

Matching runs in tiers, most specific signal first:

1. keywords found in the title (longest keyword wins, so "corn flakes"
   beats "corn"),
2. keywords found in the image hint,
3. keywords found in the category, unless the title already names a
   specific product (a generic "Household" or "Dairy" category must not
   stand in for a title that mentions milk or detergent),
4. title words longer than three characters looked up as exact keys,
5. a generic grocery photo.

Pure functions only; safe to call concurrently.
"""

from __future__ import annotations

_PEXELS = "https://images.pexels.com/photos/{photo}?auto=compress&cs=tinysrgb&w={w}&h={h}&fit=crop"
_UNSPLASH = "https://images.unsplash.com/{photo}?w={w}&h={h}&fit=crop"

# group -> (url template, photo path)
_PHOTOS: dict[str, tuple[str, str]] = {
    "cereal": (_PEXELS, "2119758/pexels-photo-2119758.jpeg"),
    "coffee": (_PEXELS, "312418/pexels-photo-312418.jpeg"),
    "soda": (_PEXELS, "50593/coca-cola-cold-drink-soft-drink-coke-50593.jpeg"),
    "juice": (_PEXELS, "1304548/pexels-photo-1304548.jpeg"),
    "rice": (_PEXELS, "2098135/pexels-photo-2098135.jpeg"),
    "milk": (_PEXELS, "248412/pexels-photo-248412.jpeg"),
    "yogurt": (_PEXELS, "3734612/pexels-photo-3734612.jpeg"),
    "butter": (_PEXELS, "3311336/pexels-photo-3311336.jpeg"),
    "cheese": (_UNSPLASH, "photo-1552767059-ce182ead6c1b"),
    "meat": (_PEXELS, "65175/pexels-photo-65175.jpeg"),
    "household": (_PEXELS, "545014/pexels-photo-545014.jpeg"),
    "bakery": (_PEXELS, "1775043/pexels-photo-1775043.jpeg"),
    "eggs": (_PEXELS, "162712/egg-white-food-protein-162712.jpeg"),
    "apple": (_UNSPLASH, "photo-1568702846914-96b305d2aaeb"),
    "banana": (_UNSPLASH, "photo-1571771894821-ce9b6c11b08e"),
    "tomato": (_UNSPLASH, "photo-1592924357228-91a4daadcfea"),
    "potato": (_UNSPLASH, "photo-1518977676601-b53f82aba655"),
    "pasta": (_UNSPLASH, "photo-1551462147-37885d31561a"),
    "pantry": (_PEXELS, "3962286/pexels-photo-3962286.jpeg"),
}

_KEYWORD_GROUPS: dict[str, tuple[str, ...]] = {
    "cereal": ("corn flakes", "kellogg", "crunchy nut", "weet-bix", "bokomo", "cereal", "breakfast"),
    "coffee": ("ricoffy", "nescafe", "coffee"),
    "soda": ("coca-cola", "coke", "soda"),
    "juice": ("appletiser", "sir fruit", "liqui-fruit", "ceres", "juice", "sparkling", "beverage"),
    "rice": ("long grain", "maize meal", "tastic", "rice"),
    "milk": ("parmalat", "clover", "milk", "dairy"),
    "yogurt": ("greek yogurt", "danone", "yogurt"),
    "butter": ("lancewood", "butter"),
    "cheese": ("cheddar", "cheese"),
    "meat": (
        "rainbow chicken",
        "chicken breast",
        "farmer's choice",
        "chicken",
        "beef",
        "pork",
        "sausages",
        "sausage",
        "boerewors",
        "eskort",
        "meat",
    ),
    "household": (
        "sunlight",
        "dishwashing",
        "handy andy",
        "detergent",
        "washing powder",
        "cleaning",
        "household",
    ),
    "bakery": ("tiger brands", "albany", "sasko", "biscuits", "bread", "rolls", "pastries", "bakery"),
    "eggs": ("eggs",),
    "apple": ("apples", "apple"),
    "banana": ("bananas", "banana"),
    "tomato": ("tomatoes", "tomato"),
    "potato": ("potatoes", "potato"),
    "pasta": ("spaghetti", "pasta"),
    "pantry": ("canned", "baked beans", "corn", "pantry", "grocery"),
}

KEYWORD_TABLE: dict[str, str] = {
    keyword: group for group, keywords in _KEYWORD_GROUPS.items() for keyword in keywords
}

# Title keywords that make a category-level match too generic to trust
SPECIFIC_PRODUCT_KEYWORDS = (
    "chicken",
    "milk",
    "yogurt",
    "butter",
    "coffee",
    "juice",
    "cereal",
    "rice",
    "detergent",
    "bread",
)

GENERIC_GROUP = "pantry"


def image_url_for_group(group: str, width: int = 400, height: int = 400) -> str:
    """Build the sized stock photo URL for a keyword group."""
    template, photo = _PHOTOS.get(group, _PHOTOS[GENERIC_GROUP])
    return template.format(photo=photo, w=width, h=height)


def fallback_image_url(width: int = 400, height: int = 400) -> str:
    return image_url_for_group(GENERIC_GROUP, width, height)


def _longest_substring_match(text: str) -> str | None:
    matches = [keyword for keyword in KEYWORD_TABLE if keyword in text]
    if not matches:
        return None
    # Equal lengths: the keyword appearing later wins ("Clover Butter" is butter)
    return max(matches, key=lambda keyword: (len(keyword), text.rfind(keyword)))


def match_keyword(
    title: str | None,
    hint: str | None = None,
    category: str | None = None,
) -> str | None:
    """Return the table keyword chosen for these texts, or None for the generic photo."""
    title_text = (title or "").lower()
    hint_text = (hint or "").lower()
    category_text = (category or "").lower()

    for text in (title_text, hint_text):
        if text and (keyword := _longest_substring_match(text)):
            return keyword

    if category_text and not any(k in title_text for k in SPECIFIC_PRODUCT_KEYWORDS):
        if keyword := _longest_substring_match(category_text):
            return keyword

    for word in title_text.split():
        if len(word) > 3 and word in KEYWORD_TABLE:
            return word

    return None


def resolve_image_url(
    title: str | None,
    hint: str | None = None,
    category: str | None = None,
    *,
    width: int = 400,
    height: int = 400,
) -> str:
    """Pick a representative photo URL; never fails."""
    keyword = match_keyword(title, hint, category)
    if keyword is None:
        return fallback_image_url(width, height)
    return image_url_for_group(KEYWORD_TABLE[keyword], width, height)
