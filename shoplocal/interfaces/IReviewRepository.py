from abc import ABC, abstractmethod
from typing import Dict, List

from shoplocal.domain.models import Review

class IReviewRepository(ABC):
    @abstractmethod
    def create_review(self, data: Dict) -> Review:
        pass

    @abstractmethod
    def list_for_shop(self, shop_id: int) -> List[Review]:
        pass
