from .actions import Action
from .reducer import reduce
from .store import ShopStore

__all__ = ['Action', 'reduce', 'ShopStore']
