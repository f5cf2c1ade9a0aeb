from typing import List, Optional, Protocol

from ..schemas import RepositorySummary


class RepositorySource(Protocol):
    async def search_by_topic(self, topic: str, limit: int) -> List[RepositorySummary]:
        ...

    async def fetch_file(self, repository: RepositorySummary, path: str) -> Optional[str]:
        ...
