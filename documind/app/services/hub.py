"""
Hugging Face Explorer Service: 검색 grounding 기반 트렌드 요약.
"""

from documind.core.session import WorkspaceSession
from documind.domain.constants import DEFAULT_HUB_QUERY
from documind.domain.schemas import HubResult, ProcessingStep

from .base import WorkspaceService


class HubService(WorkspaceService):
    """Hugging Face 리소스 탐색."""

    async def explore(self, session: WorkspaceSession, query: str | None = None) -> WorkspaceSession:
        query = (query or "").strip() or DEFAULT_HUB_QUERY

        session.begin(ProcessingStep.PROCESSING)
        try:
            response = await self._tracked(
                session,
                "hub.explore",
                "hub",
                lambda: self.provider.explore_hub(query),
            )
        except Exception as e:
            self._fail(session, e)
            return session

        session.state.hub_result = HubResult.from_dict(response.data, response.grounding)
        session.complete()
        return session
