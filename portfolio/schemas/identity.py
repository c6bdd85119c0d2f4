from typing import Optional

from pydantic import BaseModel


class Identity(BaseModel):
    """Signed-in user as seen by the application.

    Built from the identity provider's profile at the OAuth callback and kept
    whole in the session; views and handlers only ever see this shape.
    """

    provider: str
    provider_user_id: str
    display_name: str
    email: Optional[str] = None

    model_config = {"frozen": True}
