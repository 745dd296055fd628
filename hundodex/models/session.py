from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Session:
    """
    Authentication state as seen by the client.

    Attributes:
        user_id: Signed-in user, or None
        is_loading: True while a session restore is in progress
        access_token: Opaque provider token for the signed-in user
    """

    user_id: str | None = None
    is_loading: bool = False
    access_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None
