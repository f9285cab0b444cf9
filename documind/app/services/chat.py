"""
Chat Service: 단일 턴 모델 질의.

- lite 모드: flash 모델, thinking 미사용
- 기본 모드: pro 모델, thinking 토글 가능
- 실패도 대화 기록에 "ERROR: ..." 턴으로 남김
"""

from documind.core.session import WorkspaceSession
from documind.domain.schemas import ChatTurn

from .base import WorkspaceService, describe_error


class ChatService(WorkspaceService):
    """대화 터미널."""

    EMPTY_REPLY = "..."

    async def send(
        self,
        session: WorkspaceSession,
        message: str,
        lite: bool = False,
        thinking: bool = False,
    ) -> WorkspaceSession:
        """
        메시지 전송.

        빈 입력은 무시. 이전 턴은 컨텍스트로 보내지 않음 (메시지 단위 요청).
        """
        if not message.strip():
            return session

        session.state.chat_history.append(ChatTurn(role="user", text=message))

        try:
            reply = await self._tracked(
                session,
                "chat.message",
                "chat_lite" if lite else "chat",
                lambda: self.provider.chat(message, lite=lite, thinking=thinking),
            )
        except Exception as e:
            _, error_message = describe_error(e)
            reply_turn = ChatTurn(role="ai", text=f"ERROR: {error_message}")
        else:
            reply_turn = ChatTurn(role="ai", text=reply or self.EMPTY_REPLY)

        # await 동안 reset_outputs()로 chat_history 객체가 바뀔 수 있음
        session.state.chat_history.append(reply_turn)
        return session
