# Database
from .connection import Base, DatabaseManager, get_db_session

__all__ = ['Base', 'DatabaseManager', 'get_db_session']
