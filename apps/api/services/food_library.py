"""
Macro food table and dietary meal profiles.

Read-only lookup data for the nutrition side of the plan engine:
- FOOD_MACROS: per-serving macros for foods users commonly ask to add
- MEAL_PROFILES: named breakfast/lunch/dinner/snack templates per dietary preference
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class FoodMacros:
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: Optional[int] = None


@dataclass(frozen=True)
class MealProfile:
    breakfast: str
    lunch: str
    dinner: str
    snacks: Tuple[str, ...]
    guidance: Tuple[str, ...]


# Used for any food not present in FOOD_MACROS.
DEFAULT_FOOD_MACROS = FoodMacros(calories=220, protein=12, carbs=20, fat=8, fiber=3)

FOOD_MACROS: Mapping[str, FoodMacros] = MappingProxyType({
    "grilled chicken breast": FoodMacros(165, 31, 0, 4),
    "salmon fillet": FoodMacros(233, 25, 0, 14),
    "tofu": FoodMacros(144, 17, 4, 8),
    "tempeh": FoodMacros(195, 20, 12, 11),
    "lentils": FoodMacros(230, 18, 40, 1, fiber=16),
    "quinoa": FoodMacros(222, 8, 39, 4, fiber=5),
    "brown rice": FoodMacros(216, 5, 45, 2),
    "sweet potato": FoodMacros(180, 4, 41, 0, fiber=6),
    "greek yogurt": FoodMacros(150, 15, 10, 4),
    "oats": FoodMacros(150, 5, 27, 3, fiber=4),
    "chia pudding": FoodMacros(200, 6, 18, 12, fiber=10),
    "avocado toast": FoodMacros(320, 7, 32, 19, fiber=8),
    "smoothie bowl": FoodMacros(350, 20, 45, 10, fiber=8),
    "edamame": FoodMacros(180, 17, 15, 8, fiber=8),
    "hummus with veggie sticks": FoodMacros(220, 8, 24, 10, fiber=6),
    "almonds": FoodMacros(170, 6, 6, 15, fiber=4),
    "cottage cheese": FoodMacros(180, 24, 6, 5),
    "protein shake": FoodMacros(200, 30, 8, 4),
    "overnight oats": FoodMacros(380, 24, 45, 12, fiber=8),
})

MEAL_PROFILES: Mapping[str, MealProfile] = MappingProxyType({
    "omnivore": MealProfile(
        breakfast="Protein Berry Oats",
        lunch="Power Bowl with Lean Protein",
        dinner="Performance Plate with Seasonal Veg",
        snacks=("Greek Yogurt + Nuts", "Citrus Recovery Smoothie"),
        guidance=(
            "Anchor meals around lean protein, colorful produce, fibre-rich carbs, and healthy fats.",
            "Aim for hydration pulses of 500ml with breakfast, lunch, and mid-afternoon.",
        ),
    ),
    "vegetarian": MealProfile(
        breakfast="Chia Pudding Sunrise Jar",
        lunch="Mediterranean Tempeh Power Bowl",
        dinner="Roasted Veg + Lentil Sheet Pan",
        snacks=("Matcha Protein Shake", "Apple + Almond Butter"),
        guidance=(
            "Distribute plant proteins across the day to hit amino acid targets.",
            "Layer herbs & citrus for bright flavor without increasing sodium.",
        ),
    ),
    "vegan": MealProfile(
        breakfast="Cacao Greens Smoothie Bowl",
        lunch="Rainbow Quinoa Glow Bowl",
        dinner="Tahini Roasted Chickpea Tray",
        snacks=("Roasted Edamame Crunch", "Coconut Yogurt Parfait"),
        guidance=(
            "Anchor meals with legumes + seeds to unlock complete protein.",
            "Boost iron absorption by pairing vitamin C with high-iron foods.",
        ),
    ),
    "pescatarian": MealProfile(
        breakfast="Citrus Greek Yogurt Bowl",
        lunch="Seared Salmon Macro Bowl",
        dinner="Miso Glazed Cod with Greens",
        snacks=("Smoked Trout Rice Cakes", "Berry Collagen Smoothie"),
        guidance=(
            "Space omega-3 rich meals to support inflammation control.",
            "Pair seafood with fermented produce to aid digestion.",
        ),
    ),
    "keto": MealProfile(
        breakfast="Savory Egg & Greens Scramble",
        lunch="Power Cobb Salad",
        dinner="Garlic Butter Salmon with Zoodles",
        snacks=("Avocado Fat Bombs", "Electrolyte Chia Drink"),
        guidance=(
            "Aim for whole-food fats and colour to diversify micronutrients.",
            "Keep electrolyte support consistent to maintain energy.",
        ),
    ),
    "paleo": MealProfile(
        breakfast="Sweet Potato Protein Skillet",
        lunch="Grass-Fed Steak Harvest Bowl",
        dinner="Herbed Chicken with Root Veg",
        snacks=("Bison Jerky + Berries", "Coconut Cashew Energy Bites"),
        guidance=(
            "Rotate roots & tubers to support glycogen without grains.",
            "Layer in fermented foods for robust gut health.",
        ),
    ),
})

# First keyword contained in the preference wins.
_PREFERENCE_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("vegan", "vegan"),
    ("vegetarian", "vegetarian"),
    ("pesc", "pescatarian"),
    ("keto", "keto"),
    ("paleo", "paleo"),
)


def resolve_meal_profile_key(dietary_preference: Optional[str]) -> str:
    preference = (dietary_preference or "").lower()
    for keyword, key in _PREFERENCE_KEYWORDS:
        if keyword in preference:
            return key
    return "omnivore"


def find_meal_profile(dietary_preference: Optional[str]) -> MealProfile:
    return MEAL_PROFILES[resolve_meal_profile_key(dietary_preference)]


def lookup_food_macros(food: str) -> FoodMacros:
    """Case-insensitive lookup; unknown foods get DEFAULT_FOOD_MACROS."""
    return FOOD_MACROS.get((food or "").strip().lower(), DEFAULT_FOOD_MACROS)
