"""Domain error hierarchy.

Every failure the lifecycle core can produce is one of these. The API layer maps
them onto ``{"error": ...}`` JSON bodies using ``status_code``; storage
``IntegrityError``s are translated into a ``Conflict`` subclass before they
leave the domain modules.
"""


class DomainError(Exception):
    status_code = 422
    default_message = "リクエストを処理できませんでした"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Field-level constraint violation; carries every message found."""

    default_message = "入力内容に誤りがあります"

    def __init__(self, messages: list[str] | str | None = None):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages or [self.default_message])
        super().__init__(", ".join(self.messages))


class NotFound(DomainError):
    status_code = 404
    default_message = "見つかりませんでした"


class Unauthorized(DomainError):
    status_code = 401
    default_message = "ログインが必要です"


class Conflict(DomainError):
    pass


class AlreadyApplied(Conflict):
    default_message = "既に応募済みです"


class OutOfWindow(Conflict):
    default_message = "応募期間外です"


class AlreadyReviewed(Conflict):
    default_message = "既にレビュー済みです"


class NotEligible(Conflict):
    default_message = "このキャンペーンにレビューできません"


class DuplicateShipment(Conflict):
    default_message = "この応募には既に配送情報があります"


class AlreadyRegistered(Conflict):
    default_message = "このメールアドレスは既に登録されています"
