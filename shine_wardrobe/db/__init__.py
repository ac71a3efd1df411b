# Database module
from shine_wardrobe.db.mongo import Database, PersistenceError
from shine_wardrobe.db.users import UserRepository, DuplicateEmailError
from shine_wardrobe.db.products import ProductRepository
from shine_wardrobe.db.recommendations import RecommendationRepository
