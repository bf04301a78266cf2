from __future__ import annotations

from ..catalog import CATEGORY_PRIORITY, Category

_TYPES_BY_CATEGORY: dict[Category, tuple[str, ...]] = {
    Category.food_drink: (
        "restaurant", "cafe", "coffee_shop", "bakery", "food", "meal_delivery",
        "meal_takeaway", "ice_cream_shop", "juice_bar", "wine_bar", "brewery",
        "distillery", "winery", "american_restaurant", "italian_restaurant",
        "japanese_restaurant", "chinese_restaurant", "mexican_restaurant",
        "indian_restaurant", "french_restaurant", "thai_restaurant",
        "vietnamese_restaurant", "korean_restaurant", "mediterranean_restaurant",
        "middle_eastern_restaurant", "seafood_restaurant", "steak_house",
        "pizza_restaurant", "hamburger_restaurant", "vegetarian_restaurant",
        "vegan_restaurant", "brunch_restaurant", "fast_food_restaurant",
        "sandwich_shop", "ramen_restaurant", "sushi_restaurant", "barbecue_restaurant",
    ),
    Category.culture: (
        "museum", "art_gallery", "library", "church", "hindu_temple", "mosque",
        "synagogue", "place_of_worship", "city_hall", "courthouse", "embassy",
        "historical_landmark", "performing_arts_theater", "movie_theater",
        "cultural_center", "art_studio", "concert_hall", "opera_house",
        "community_center",
    ),
    Category.nature: (
        "park", "national_park", "state_park", "natural_feature", "hiking_area",
        "campground", "beach", "marina", "garden", "botanical_garden", "zoo",
        "aquarium", "wildlife_park", "dog_park", "playground", "forest", "mountain",
        "river", "lake", "waterfall", "cave", "scenic_point",
    ),
    Category.nightlife: (
        "night_club", "bar", "pub", "cocktail_bar", "sports_bar", "lounge",
        "karaoke", "comedy_club", "jazz_club", "live_music_venue", "dance_club",
        "hookah_bar",
    ),
    Category.shopping: (
        "store", "shopping_mall", "department_store", "supermarket",
        "grocery_or_supermarket", "convenience_store", "market", "farmers_market",
        "flea_market", "book_store", "clothing_store", "shoe_store", "jewelry_store",
        "electronics_store", "furniture_store", "home_goods_store", "florist",
        "gift_shop", "pet_store", "bicycle_store", "sporting_goods_store",
        "toy_store", "liquor_store", "hardware_store", "pharmacy", "drugstore",
        "boutique", "antique_shop", "vintage_store", "outlet_store",
    ),
    Category.activities: (
        "tourist_attraction", "amusement_park", "theme_park", "water_park",
        "bowling_alley", "casino", "stadium", "arena", "golf_course", "ski_resort",
        "sports_complex", "sports_club", "gym", "swimming_pool", "escape_room",
        "mini_golf", "climbing_gym", "scuba_diving", "surfing", "kayaking",
        "sailing", "boat_tour", "bus_tour", "walking_tour", "food_tour",
        "wine_tour", "cooking_class", "art_class", "point_of_interest",
        "establishment",
    ),
    Category.wellness: (
        "spa", "beauty_salon", "hair_care", "hair_salon", "nail_salon", "massage",
        "sauna", "hot_spring", "fitness_center", "yoga_studio", "pilates_studio",
        "meditation_center", "health",
    ),
    Category.services: (
        "gas_station", "car_wash", "car_repair", "car_rental", "parking", "atm",
        "bank", "post_office", "police", "laundry", "travel_agency", "airport",
        "bus_station", "train_station", "subway_station", "light_rail_station",
        "taxi_stand", "transit_station", "ferry_terminal",
    ),
    Category.accommodation: (
        "lodging", "hotel", "motel", "hostel", "bed_and_breakfast", "resort", "inn",
        "guest_house", "vacation_rental", "rv_park",
    ),
}

TYPE_TO_CATEGORY: dict[str, Category] = {
    place_type: category
    for category, place_types in _TYPES_BY_CATEGORY.items()
    for place_type in place_types
}


def category_for_type(place_type: str) -> Category:
    return TYPE_TO_CATEGORY.get(place_type.lower(), Category.other)


def all_categories(types: list[str]) -> list[Category]:
    """Return the distinct categories of ``types`` in first-seen order."""
    if not types:
        return [Category.other]
    categories: list[Category] = []
    for place_type in types:
        category = category_for_type(place_type)
        if category not in categories:
            categories.append(category)
    return categories


def primary_category(types: list[str]) -> Category:
    categories = all_categories(types)
    if len(categories) == 1:
        return categories[0]
    for category in CATEGORY_PRIORITY:
        if category in categories:
            return category
    return categories[0]
