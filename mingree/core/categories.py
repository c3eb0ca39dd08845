from typing import Dict

CATEGORIES: Dict[str, Dict[str, str]] = {
    "music_reels": {"name": "Music Reels", "description": "Music promotions, song launches and lyric reels"},
    "lifestyle": {"name": "Lifestyle", "description": "Fashion, beauty and everyday living"},
    "tech": {"name": "Tech", "description": "Gadgets, apps and software"},
    "food": {"name": "Food", "description": "Restaurants, recipes and food brands"},
    "gaming": {"name": "Gaming", "description": "Games, streamers and esports"},
    "fitness": {"name": "Fitness", "description": "Workouts, nutrition and wellness"},
    "education": {"name": "Education", "description": "Courses, edtech and learning"},
    "travel": {"name": "Travel", "description": "Destinations, stays and travel gear"},
    "finance": {"name": "Finance", "description": "Fintech, investing and banking"},
    "ecommerce": {"name": "E-commerce", "description": "Online stores and D2C brands"},
}


def is_valid_category(category: str) -> bool:
    return category in CATEGORIES
