"""
Menu Catalogue

Default menu inserted at startup when the menu table is empty, plus the
query helper behind ``GET /api/menu``.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quickserve.models import MenuCategory, MenuItem

logger = logging.getLogger(__name__)


DEFAULT_MENU: list[dict] = [
    {
        "name": "Crispy Calamari",
        "description": "Lightly battered squid rings with lemon aioli and marinara.",
        "price": 249.0,
        "image": "https://images.pexels.com/photos/3296280/pexels-photo-3296280.jpeg",
        "category": MenuCategory.APPETIZERS,
        "popular": True,
        "allergens": ["Seafood", "Gluten", "Eggs"],
        "preparation_time": "10-15 min",
    },
    {
        "name": "Bruschetta Trio",
        "description": "Toasted ciabatta topped with tomato basil, mushroom and olive tapenade.",
        "price": 199.0,
        "image": "https://images.pexels.com/photos/5639411/pexels-photo-5639411.jpeg",
        "category": MenuCategory.APPETIZERS,
        "popular": False,
        "allergens": ["Gluten"],
        "preparation_time": "8-10 min",
    },
    {
        "name": "Herb Roasted Chicken",
        "description": "Half chicken roasted with rosemary and thyme, served with seasonal vegetables.",
        "price": 449.0,
        "image": "https://images.pexels.com/photos/2338407/pexels-photo-2338407.jpeg",
        "category": MenuCategory.MAIN_COURSE,
        "popular": True,
        "allergens": [],
        "preparation_time": "25-30 min",
    },
    {
        "name": "Braised Lamb Shank",
        "description": "Slow braised lamb shank in red wine jus over creamy polenta.",
        "price": 599.0,
        "image": "https://images.pexels.com/photos/8697540/pexels-photo-8697540.jpeg",
        "category": MenuCategory.MAIN_COURSE,
        "popular": False,
        "allergens": ["Dairy"],
        "preparation_time": "30-35 min",
    },
    {
        "name": "Grilled Salmon",
        "description": "Atlantic salmon fillet with lemon butter sauce and asparagus.",
        "price": 549.0,
        "image": "https://images.pexels.com/photos/3763847/pexels-photo-3763847.jpeg",
        "category": MenuCategory.SEAFOOD,
        "popular": True,
        "allergens": ["Fish", "Dairy"],
        "preparation_time": "20-25 min",
    },
    {
        "name": "Garlic Butter Prawns",
        "description": "Tiger prawns sauteed in garlic butter with chilli flakes and parsley.",
        "price": 499.0,
        "image": "https://images.pexels.com/photos/566345/pexels-photo-566345.jpeg",
        "category": MenuCategory.SEAFOOD,
        "popular": False,
        "allergens": ["Shellfish", "Dairy"],
        "preparation_time": "15-20 min",
    },
    {
        "name": "Spaghetti Carbonara",
        "description": "Spaghetti tossed with pancetta, egg yolk, pecorino and black pepper.",
        "price": 349.0,
        "image": "https://images.pexels.com/photos/1279330/pexels-photo-1279330.jpeg",
        "category": MenuCategory.PASTA,
        "popular": True,
        "allergens": ["Gluten", "Eggs", "Dairy"],
        "preparation_time": "15-20 min",
    },
    {
        "name": "Penne Arrabbiata",
        "description": "Penne in a spicy tomato sauce with garlic and fresh basil.",
        "price": 299.0,
        "image": "https://images.pexels.com/photos/1437267/pexels-photo-1437267.jpeg",
        "category": MenuCategory.PASTA,
        "popular": False,
        "allergens": ["Gluten"],
        "preparation_time": "15-20 min",
    },
    {
        "name": "Mushroom Risotto",
        "description": "Arborio rice slow cooked with wild mushrooms, parmesan and truffle oil.",
        "price": 379.0,
        "image": "https://images.pexels.com/photos/6406460/pexels-photo-6406460.jpeg",
        "category": MenuCategory.VEGETARIAN,
        "popular": True,
        "allergens": ["Dairy"],
        "preparation_time": "20-25 min",
    },
    {
        "name": "Paneer Tikka Platter",
        "description": "Char-grilled cottage cheese with peppers, onions and mint chutney.",
        "price": 329.0,
        "image": "https://images.pexels.com/photos/9609838/pexels-photo-9609838.jpeg",
        "category": MenuCategory.VEGETARIAN,
        "popular": False,
        "allergens": ["Dairy"],
        "preparation_time": "15-20 min",
    },
    {
        "name": "Tiramisu",
        "description": "Espresso soaked ladyfingers layered with mascarpone cream and cocoa.",
        "price": 229.0,
        "image": "https://images.pexels.com/photos/6133305/pexels-photo-6133305.jpeg",
        "category": MenuCategory.DESSERTS,
        "popular": True,
        "allergens": ["Gluten", "Eggs", "Dairy"],
        "preparation_time": "5 min",
    },
    {
        "name": "Chocolate Lava Cake",
        "description": "Warm chocolate cake with a molten centre and vanilla ice cream.",
        "price": 249.0,
        "image": "https://images.pexels.com/photos/291528/pexels-photo-291528.jpeg",
        "category": MenuCategory.DESSERTS,
        "popular": False,
        "allergens": ["Gluten", "Eggs", "Dairy"],
        "preparation_time": "12-15 min",
    },
    {
        "name": "Fresh Lime Soda",
        "description": "Freshly squeezed lime with soda, served sweet or salted.",
        "price": 99.0,
        "image": "https://images.pexels.com/photos/1194030/pexels-photo-1194030.jpeg",
        "category": MenuCategory.BEVERAGES,
        "popular": False,
        "allergens": [],
        "preparation_time": "3 min",
    },
    {
        "name": "Mango Lassi",
        "description": "Chilled yogurt drink blended with ripe mango and a pinch of cardamom.",
        "price": 129.0,
        "image": "https://images.pexels.com/photos/5946720/pexels-photo-5946720.jpeg",
        "category": MenuCategory.BEVERAGES,
        "popular": True,
        "allergens": ["Dairy"],
        "preparation_time": "5 min",
    },
]


async def seed_menu(db: AsyncSession) -> int:
    """
    Insert ``DEFAULT_MENU`` if the menu table is empty.

    Returns:
        Number of items inserted (0 when a menu already exists)
    """
    existing = await db.scalar(select(func.count(MenuItem.id)))
    if existing:
        return 0

    db.add_all(MenuItem(**item) for item in DEFAULT_MENU)
    await db.commit()
    logger.info(f"Seeded {len(DEFAULT_MENU)} menu items")
    return len(DEFAULT_MENU)


async def list_menu_items(
    db: AsyncSession,
    category: Optional[MenuCategory] = None,
    search: Optional[str] = None,
    popular: Optional[bool] = None,
) -> list[MenuItem]:
    """Menu items ordered by category then name, optionally filtered."""
    query = select(MenuItem).order_by(MenuItem.category, MenuItem.name)

    if category is not None:
        query = query.where(MenuItem.category == category)
    if popular is not None:
        query = query.where(MenuItem.popular.is_(popular))
    term = (search or "").strip().lower()
    if term:
        # Search text is literal; LIKE wildcards in it are escaped
        term = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{term}%"
        query = query.where(or_(
            func.lower(MenuItem.name).like(pattern, escape="\\"),
            func.lower(MenuItem.description).like(pattern, escape="\\"),
        ))

    result = await db.execute(query)
    return list(result.scalars().all())
