# smartsave/loaders/base.py
from abc import ABC, abstractmethod

from smartsave.core.categorizer import CATEGORY_KEYWORDS


class BaseLoader(ABC):
    def __init__(self, categories=None):
        self.categories = categories or CATEGORY_KEYWORDS

    @abstractmethod
    def load(self, file_path: str):
        """
        Yield categorized Transaction instances from file_path.
        """
        pass
