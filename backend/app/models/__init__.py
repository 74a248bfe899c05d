from app.models.base import Base
from app.models.card import Card
from app.models.category import Category
from app.models.detail_page import DetailPage
from app.models.dynamic_table import DynamicTable
from app.models.study_page import StudyPage
from app.models.user import User

__all__ = [
    "Base",
    "User",
    "StudyPage",
    "Category",
    "Card",
    "DetailPage",
    "DynamicTable",
]
